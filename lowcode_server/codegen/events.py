"""
Parameter contracts of the code generation events.

Every generation step is an event that plugins can hook into. Each event has
a params model; a plugin's before hook receives the params and returns the
(possibly modified) params that the default generator then uses.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Type

from pydantic import ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from lowcode_server.codegen.types import (
    CamelModel,
    Entity,
    EntityActions,
    EntityLookupField,
    ModuleAction,
    ModuleContainer,
    PackageReference,
    SecretsNameKey,
    VariableDictionary,
)


class EventNames(str, Enum):
    """Names of the code generation events."""

    CREATE_ENTITY_SERVICE_BASE = "CreateEntityServiceBase"
    CREATE_ENTITY_SERVICE = "CreateEntityService"
    CREATE_ENTITY_CONTROLLER = "CreateEntityController"
    CREATE_ENTITY_CONTROLLER_BASE = "CreateEntityControllerBase"
    CREATE_ENTITY_GRPC_CONTROLLER = "CreateEntityGrpcController"
    CREATE_ENTITY_GRPC_CONTROLLER_BASE = "CreateEntityGrpcControllerBase"
    CREATE_ENTITY_INTERFACE = "CreateEntityInterface"
    CREATE_ENTITY_CONTROLLER_TO_MANY_RELATION_METHODS = (
        "CreateEntityControllerToManyRelationMethods"
    )
    CREATE_SERVER_AUTH = "CreateServerAuth"
    CREATE_SERVER = "CreateServer"
    CREATE_SERVER_DOT_ENV = "CreateServerDotEnv"
    CREATE_SERVER_GIT_IGNORE = "CreateServerGitIgnore"
    CREATE_SERVER_DOCKER_COMPOSE = "CreateServerDockerCompose"
    CREATE_SERVER_DOCKER_COMPOSE_DEV = "CreateServerDockerComposeDev"
    CREATE_SERVER_CSPROJ = "CreateServerCsproj"
    CREATE_MESSAGE_BROKER = "CreateMessageBroker"
    CREATE_MESSAGE_BROKER_TOPICS_ENUM = "CreateMessageBrokerTopicsEnum"
    CREATE_MESSAGE_BROKER_CLIENT_OPTIONS_FACTORY = (
        "CreateMessageBrokerClientOptionsFactory"
    )
    CREATE_MESSAGE_BROKER_SERVICE = "CreateMessageBrokerService"
    CREATE_MESSAGE_BROKER_SERVICE_BASE = "CreateMessageBrokerServiceBase"
    CREATE_MAIN_FILE = "CreateMainFile"
    CREATE_SWAGGER = "CreateSwagger"
    CREATE_SEED = "CreateSeed"
    CREATE_DTOS = "CreateDTOs"
    LOAD_STATIC_FILES = "LoadStaticFiles"
    CREATE_SERVER_SECRETS_MANAGER = "CreateServerSecretsManager"
    CREATE_ENTITY_EXTENSIONS = "CreateEntityExtensions"


class InvalidEventParamsError(Exception):
    """Exception raised when raw event params do not match the event's contract."""

    def __init__(self, event: EventNames, errors: List[Dict[str, Any]]):
        self.event = event
        self.errors = errors
        super().__init__(f"Invalid params for event {event.value}: {errors}")


class EventParams(CamelModel):
    """
    Base of all event params.

    A before hook sets skip_default_behavior to replace the default
    generator's output entirely; extra keys are kept so plugins can pass
    data between their hooks.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    skip_default_behavior: bool = Field(default=False, exclude=True)


class CreateEntityServiceBaseParams(EventParams):
    entity: Entity
    resource_name: str
    apis_dir: str
    module_containers: List[ModuleContainer] = []
    module_actions: List[ModuleAction] = []
    entities: List[Entity] = []


class CreateEntityServiceParams(EventParams):
    entity: Entity
    resource_name: str
    apis_dir: str
    entity_actions: EntityActions


class CreateEntityControllerParams(EventParams):
    entity: Entity
    resource_name: str
    apis_dir: str
    entity_actions: EntityActions


class CreateEntityControllerBaseParams(EventParams):
    entity: Entity
    resource_name: str
    apis_dir: str
    module_containers: List[ModuleContainer] = []
    entity_actions: EntityActions


class CreateEntityGrpcControllerParams(EventParams):
    entity: Entity


class CreateEntityGrpcControllerBaseParams(EventParams):
    entity: Entity


class CreateEntityInterfaceParams(EventParams):
    entity: Entity
    resource_name: str
    apis_dir: str
    module_containers: List[ModuleContainer] = []
    module_actions: List[ModuleAction] = []
    entities: List[Entity] = []


class CreateEntityControllerToManyRelationMethodsParams(EventParams):
    field: EntityLookupField
    entity: Entity


class CreateServerAuthParams(EventParams):
    pass


class CreateServerParams(EventParams):
    pass


class CreateServerDotEnvParams(EventParams):
    env_variables: VariableDictionary = []


class CreateServerGitIgnoreParams(EventParams):
    gitignore_paths: List[str] = []


class CreateServerDockerComposeParams(EventParams):
    file_content: str = ""
    update_properties: List[Dict[str, Any]] = []
    output_file_name: str = "docker-compose.yml"


class CreateServerDockerComposeDevParams(EventParams):
    file_content: str = ""
    update_properties: List[Dict[str, Any]] = []
    output_file_name: str = "docker-compose.dev.yml"


class CreateServerCsprojParams(EventParams):
    package_references: List[PackageReference] = []


class CreateMessageBrokerParams(EventParams):
    pass


class CreateMessageBrokerTopicsEnumParams(EventParams):
    pass


class CreateMessageBrokerClientOptionsFactoryParams(EventParams):
    pass


class CreateMessageBrokerServiceParams(EventParams):
    pass


class CreateMessageBrokerServiceBaseParams(EventParams):
    pass


class CreateMainFileParams(EventParams):
    pass


class CreateSwaggerParams(EventParams):
    file_dir: str
    output_file_name: str


class CreateSeedParams(EventParams):
    file_dir: str
    output_file_name: str
    dto_name_to_path: Dict[str, str] = {}


class CreateDTOsParams(EventParams):
    entity: Entity
    dto_name: str
    dto_base_path: str


class LoadStaticFilesParams(EventParams):
    source: str
    base_path: str


class CreateServerSecretsManagerParams(EventParams):
    secrets_name_key: List[SecretsNameKey] = []


class CreateEntityExtensionsParams(EventParams):
    entity: Entity
    resource_name: str
    apis_dir: str


EVENT_PARAMS: Dict[EventNames, Type[EventParams]] = {
    EventNames.CREATE_ENTITY_SERVICE_BASE: CreateEntityServiceBaseParams,
    EventNames.CREATE_ENTITY_SERVICE: CreateEntityServiceParams,
    EventNames.CREATE_ENTITY_CONTROLLER: CreateEntityControllerParams,
    EventNames.CREATE_ENTITY_CONTROLLER_BASE: CreateEntityControllerBaseParams,
    EventNames.CREATE_ENTITY_GRPC_CONTROLLER: CreateEntityGrpcControllerParams,
    EventNames.CREATE_ENTITY_GRPC_CONTROLLER_BASE: CreateEntityGrpcControllerBaseParams,
    EventNames.CREATE_ENTITY_INTERFACE: CreateEntityInterfaceParams,
    EventNames.CREATE_ENTITY_CONTROLLER_TO_MANY_RELATION_METHODS: (
        CreateEntityControllerToManyRelationMethodsParams
    ),
    EventNames.CREATE_SERVER_AUTH: CreateServerAuthParams,
    EventNames.CREATE_SERVER: CreateServerParams,
    EventNames.CREATE_SERVER_DOT_ENV: CreateServerDotEnvParams,
    EventNames.CREATE_SERVER_GIT_IGNORE: CreateServerGitIgnoreParams,
    EventNames.CREATE_SERVER_DOCKER_COMPOSE: CreateServerDockerComposeParams,
    EventNames.CREATE_SERVER_DOCKER_COMPOSE_DEV: CreateServerDockerComposeDevParams,
    EventNames.CREATE_SERVER_CSPROJ: CreateServerCsprojParams,
    EventNames.CREATE_MESSAGE_BROKER: CreateMessageBrokerParams,
    EventNames.CREATE_MESSAGE_BROKER_TOPICS_ENUM: CreateMessageBrokerTopicsEnumParams,
    EventNames.CREATE_MESSAGE_BROKER_CLIENT_OPTIONS_FACTORY: (
        CreateMessageBrokerClientOptionsFactoryParams
    ),
    EventNames.CREATE_MESSAGE_BROKER_SERVICE: CreateMessageBrokerServiceParams,
    EventNames.CREATE_MESSAGE_BROKER_SERVICE_BASE: CreateMessageBrokerServiceBaseParams,
    EventNames.CREATE_MAIN_FILE: CreateMainFileParams,
    EventNames.CREATE_SWAGGER: CreateSwaggerParams,
    EventNames.CREATE_SEED: CreateSeedParams,
    EventNames.CREATE_DTOS: CreateDTOsParams,
    EventNames.LOAD_STATIC_FILES: LoadStaticFilesParams,
    EventNames.CREATE_SERVER_SECRETS_MANAGER: CreateServerSecretsManagerParams,
    EventNames.CREATE_ENTITY_EXTENSIONS: CreateEntityExtensionsParams,
}


def params_model_for(event) -> Type[EventParams]:
    """Get the params model of an event, given as EventNames or its string value."""
    return EVENT_PARAMS[EventNames(event)]


def validate_event_params(event, data: Optional[Dict[str, Any]]) -> EventParams:
    """
    Validate raw params of an event.

    Raises:
        InvalidEventParamsError: if the data does not match the event's model
    """
    event = EventNames(event)
    model = EVENT_PARAMS[event]
    try:
        return model.model_validate(data or {})
    except ValidationError as exc:
        errors = exc.errors(
            include_url=False, include_context=False, include_input=False
        )
        raise InvalidEventParamsError(event, errors) from exc
