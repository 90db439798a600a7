"""
Domain model consumed by the code generator.

Entities with their fields, module containers and module actions describe
what a generated service exposes. All models accept both snake_case and the
camelCase keys the modeling client sends.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from lowcode_server.codegen.naming import camel_case, pascal_case


class CamelModel(BaseModel):
    """Base model accepting camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EnumDataType(str, Enum):
    """Data types an entity field can have."""

    SINGLE_LINE_TEXT = "SingleLineText"
    MULTI_LINE_TEXT = "MultiLineText"
    EMAIL = "Email"
    WHOLE_NUMBER = "WholeNumber"
    DATE_TIME = "DateTime"
    DECIMAL_NUMBER = "DecimalNumber"
    LOOKUP = "Lookup"
    MULTI_SELECT_OPTION_SET = "MultiSelectOptionSet"
    OPTION_SET = "OptionSet"
    BOOLEAN = "Boolean"
    ID = "Id"
    CREATED_AT = "CreatedAt"
    UPDATED_AT = "UpdatedAt"
    GEOGRAPHIC_LOCATION = "GeographicLocation"
    ROLES = "Roles"
    USERNAME = "Username"
    PASSWORD = "Password"
    JSON = "Json"


# Fields the persistence layer maintains; never part of create/update inputs
SYSTEM_DATA_TYPES = {EnumDataType.ID, EnumDataType.CREATED_AT, EnumDataType.UPDATED_AT}

CSHARP_TYPES = {
    EnumDataType.SINGLE_LINE_TEXT: "string",
    EnumDataType.MULTI_LINE_TEXT: "string",
    EnumDataType.EMAIL: "string",
    EnumDataType.WHOLE_NUMBER: "int",
    EnumDataType.DATE_TIME: "DateTime",
    EnumDataType.DECIMAL_NUMBER: "double",
    EnumDataType.MULTI_SELECT_OPTION_SET: "List<string>",
    EnumDataType.OPTION_SET: "string",
    EnumDataType.BOOLEAN: "bool",
    EnumDataType.ID: "string",
    EnumDataType.CREATED_AT: "DateTime",
    EnumDataType.UPDATED_AT: "DateTime",
    EnumDataType.GEOGRAPHIC_LOCATION: "string",
    EnumDataType.ROLES: "string",
    EnumDataType.USERNAME: "string",
    EnumDataType.PASSWORD: "string",
    EnumDataType.JSON: "string",
}


class EntityField(CamelModel):
    """A field of an entity."""

    id: Optional[str] = None
    permanent_id: str
    name: str
    display_name: str = ""
    data_type: EnumDataType
    required: bool = False
    unique: bool = False
    searchable: bool = False
    description: str = ""
    properties: Dict[str, Any] = {}

    @property
    def pascal_name(self) -> str:
        return pascal_case(self.name)

    @property
    def is_lookup(self) -> bool:
        return self.data_type == EnumDataType.LOOKUP

    @property
    def is_system(self) -> bool:
        return self.data_type in SYSTEM_DATA_TYPES

    @property
    def related_entity_id(self) -> Optional[str]:
        return self.properties.get("relatedEntityId")

    @property
    def related_field_id(self) -> Optional[str]:
        return self.properties.get("relatedFieldId")

    @property
    def allow_multiple_selection(self) -> bool:
        return bool(self.properties.get("allowMultipleSelection", False))


class EntityLookupField(EntityField):
    """A Lookup field relating its entity to another entity."""

    @field_validator("data_type")
    @classmethod
    def _must_be_lookup(cls, value):
        if value != EnumDataType.LOOKUP:
            raise ValueError("lookup fields must have the Lookup data type")
        return value

    @field_validator("properties")
    @classmethod
    def _must_reference_entity(cls, value):
        if not value.get("relatedEntityId"):
            raise ValueError("lookup fields must reference a related entity")
        return value


class EntityPermission(CamelModel):
    """Role-based permission on an entity action."""

    action: str
    type: str = "AllRoles"
    roles: List[str] = []


class Entity(CamelModel):
    """A data entity of the modeled service."""

    id: str
    name: str
    display_name: str
    plural_display_name: str
    plural_name: Optional[str] = None
    description: str = ""
    fields: List[EntityField] = []
    permissions: List[EntityPermission] = []

    @property
    def pascal_name(self) -> str:
        return pascal_case(self.name)

    @property
    def camel_name(self) -> str:
        return camel_case(self.name)

    @property
    def pascal_plural_name(self) -> str:
        return pascal_case(self.plural_name or self.plural_display_name)

    @property
    def camel_plural_name(self) -> str:
        return camel_case(self.plural_name or self.plural_display_name)

    def lookup_fields(self) -> List[EntityLookupField]:
        return [
            EntityLookupField.model_validate(f.model_dump())
            for f in self.fields
            if f.is_lookup and f.related_entity_id
        ]

    def to_many_fields(self) -> List[EntityLookupField]:
        return [f for f in self.lookup_fields() if f.allow_multiple_selection]

    def field_by_permanent_id(self, permanent_id: str) -> Optional[EntityField]:
        for field in self.fields:
            if field.permanent_id == permanent_id:
                return field
        return None


def csharp_type(field: EntityField, entities: List[Entity]) -> str:
    """C# type of a field, with lookups resolved to the related entity input."""
    if field.is_lookup:
        related = next((e for e in entities if e.id == field.related_entity_id), None)
        related_name = related.pascal_name if related else "object"
        if field.allow_multiple_selection:
            return f"List<{related_name}WhereUniqueInput>"
        return f"{related_name}WhereUniqueInput"
    return CSHARP_TYPES[field.data_type]


class EnumModuleActionType(str, Enum):
    """Kinds of actions a module container exposes."""

    META = "Meta"
    CREATE = "Create"
    READ = "Read"
    UPDATE = "Update"
    DELETE = "Delete"
    FIND = "Find"
    CHILDREN_CONNECT = "ChildrenConnect"
    CHILDREN_DISCONNECT = "ChildrenDisconnect"
    CHILDREN_FIND = "ChildrenFind"
    CHILDREN_UPDATE = "ChildrenUpdate"
    PARENT_GET = "ParentGet"
    CUSTOM = "Custom"


class EnumModuleActionGqlOperation(str, Enum):
    QUERY = "Query"
    MUTATION = "Mutation"


class EnumModuleActionRestVerb(str, Enum):
    GET = "Get"
    POST = "Post"
    PUT = "Put"
    PATCH = "Patch"
    DELETE = "Delete"


class ModuleContainer(CamelModel):
    """Groups the actions generated for one entity (or a custom module)."""

    id: str
    name: str
    display_name: str = ""
    description: str = ""
    enabled: bool = True
    entity_id: Optional[str] = None


class ModuleAction(CamelModel):
    """An operation exposed by a module container."""

    id: str
    name: str
    display_name: str = ""
    description: str = ""
    action_type: EnumModuleActionType
    enabled: bool = True
    gql_operation: EnumModuleActionGqlOperation = EnumModuleActionGqlOperation.QUERY
    rest_verb: EnumModuleActionRestVerb = EnumModuleActionRestVerb.GET
    path: str = ""
    parent_block_id: Optional[str] = None
    field_permanent_id: Optional[str] = None
    input_type: Optional[Dict[str, Any]] = None
    output_type: Optional[Dict[str, Any]] = None

    @property
    def pascal_name(self) -> str:
        return pascal_case(self.name)

    @property
    def http_attribute(self) -> str:
        """ASP.NET routing attribute name, e.g. HttpGet."""
        return f"Http{self.rest_verb.value}"

    @property
    def route(self) -> str:
        """ASP.NET route template, ':id' style params become '{id}'."""
        segments = []
        for segment in self.path.strip("/").split("/"):
            if segment.startswith(":"):
                segment = "{" + segment[1:] + "}"
            if segment:
                segments.append(segment)
        return "/".join(segments)


class EntityActions(CamelModel):
    """The actions generated for an entity, split by kind."""

    entity_default_actions: Dict[EnumModuleActionType, ModuleAction] = {}
    related_fields_default_actions: Dict[
        str, Dict[EnumModuleActionType, ModuleAction]
    ] = {}
    custom_actions: List[ModuleAction] = []

    def is_enabled(self, action_type: EnumModuleActionType) -> bool:
        action = self.entity_default_actions.get(action_type)
        return action is not None and action.enabled

    def related_field_action(
        self, field_name: str, action_type: EnumModuleActionType
    ) -> Optional[ModuleAction]:
        actions = self.related_fields_default_actions.get(field_name, {})
        action = actions.get(action_type)
        if action is None or not action.enabled:
            return None
        return action


ENTITY_DEFAULT_ACTION_TYPES = [
    EnumModuleActionType.META,
    EnumModuleActionType.CREATE,
    EnumModuleActionType.READ,
    EnumModuleActionType.UPDATE,
    EnumModuleActionType.DELETE,
    EnumModuleActionType.FIND,
]

RELATED_FIELD_ACTION_TYPES = [
    EnumModuleActionType.CHILDREN_CONNECT,
    EnumModuleActionType.CHILDREN_DISCONNECT,
    EnumModuleActionType.CHILDREN_FIND,
    EnumModuleActionType.CHILDREN_UPDATE,
]


def _default_action(entity: Entity, action_type: EnumModuleActionType) -> ModuleAction:
    singular = entity.camel_name
    plural = entity.camel_plural_name
    names = {
        EnumModuleActionType.META: (
            f"_{plural}Meta",
            EnumModuleActionRestVerb.GET,
            "/meta",
        ),
        EnumModuleActionType.CREATE: (
            f"create{entity.pascal_name}",
            EnumModuleActionRestVerb.POST,
            "/",
        ),
        EnumModuleActionType.READ: (singular, EnumModuleActionRestVerb.GET, "/:id"),
        EnumModuleActionType.UPDATE: (
            f"update{entity.pascal_name}",
            EnumModuleActionRestVerb.PATCH,
            "/:id",
        ),
        EnumModuleActionType.DELETE: (
            f"delete{entity.pascal_name}",
            EnumModuleActionRestVerb.DELETE,
            "/:id",
        ),
        EnumModuleActionType.FIND: (plural, EnumModuleActionRestVerb.GET, "/"),
    }
    name, verb, path = names[action_type]
    mutation = action_type in (
        EnumModuleActionType.CREATE,
        EnumModuleActionType.UPDATE,
        EnumModuleActionType.DELETE,
    )
    return ModuleAction(
        id=f"{entity.id}-{action_type.value}",
        name=name,
        display_name=name,
        action_type=action_type,
        gql_operation=(
            EnumModuleActionGqlOperation.MUTATION
            if mutation
            else EnumModuleActionGqlOperation.QUERY
        ),
        rest_verb=verb,
        path=path,
    )


def _default_related_action(
    field: EntityField, action_type: EnumModuleActionType
) -> ModuleAction:
    verbs = {
        EnumModuleActionType.CHILDREN_CONNECT: (
            "connect",
            EnumModuleActionRestVerb.POST,
        ),
        EnumModuleActionType.CHILDREN_DISCONNECT: (
            "disconnect",
            EnumModuleActionRestVerb.DELETE,
        ),
        EnumModuleActionType.CHILDREN_FIND: ("find", EnumModuleActionRestVerb.GET),
        EnumModuleActionType.CHILDREN_UPDATE: (
            "update",
            EnumModuleActionRestVerb.PATCH,
        ),
    }
    prefix, verb = verbs[action_type]
    name = f"{prefix}{field.pascal_name}"
    return ModuleAction(
        id=f"{field.permanent_id}-{action_type.value}",
        name=name,
        display_name=name,
        action_type=action_type,
        rest_verb=verb,
        path=f"/:id/{camel_case(field.name)}",
        field_permanent_id=field.permanent_id,
    )


def default_entity_actions(entity: Entity) -> EntityActions:
    """All default actions enabled, used when an entity has no module container."""
    related = {
        field.name: {
            action_type: _default_related_action(field, action_type)
            for action_type in RELATED_FIELD_ACTION_TYPES
        }
        for field in entity.to_many_fields()
    }
    return EntityActions(
        entity_default_actions={
            action_type: _default_action(entity, action_type)
            for action_type in ENTITY_DEFAULT_ACTION_TYPES
        },
        related_fields_default_actions=related,
        custom_actions=[],
    )


def build_entity_actions(
    entity: Entity,
    module_containers: List[ModuleContainer],
    module_actions: List[ModuleAction],
) -> EntityActions:
    """
    Collect the actions of the entity's module container.

    Actions bound to a field are keyed by that field's name; custom actions
    are only kept when enabled.
    """
    container = next(
        (c for c in module_containers if c.entity_id == entity.id), None
    )
    if container is None:
        return default_entity_actions(entity)

    default_actions: Dict[EnumModuleActionType, ModuleAction] = {}
    related_actions: Dict[str, Dict[EnumModuleActionType, ModuleAction]] = {}
    custom_actions: List[ModuleAction] = []

    for action in module_actions:
        if action.parent_block_id != container.id:
            continue
        if action.action_type == EnumModuleActionType.CUSTOM:
            if action.enabled:
                custom_actions.append(action)
        elif action.field_permanent_id:
            field = entity.field_by_permanent_id(action.field_permanent_id)
            if field is None:
                continue
            related_actions.setdefault(field.name, {})[action.action_type] = action
        else:
            default_actions[action.action_type] = action

    return EntityActions(
        entity_default_actions=default_actions,
        related_fields_default_actions=related_actions,
        custom_actions=custom_actions,
    )


class SecretsNameKey(CamelModel):
    """
    A secret name and the key the secrets manager service retrieves it by.
    Each pair becomes a member of the generated SecretsNameKey enum.
    """

    name: str
    key: str


class PackageReference(CamelModel):
    """A NuGet package reference of the generated project file."""

    include: str
    version: str
    include_assets: Optional[str] = None
    private_assets: Optional[str] = None


# List of single-entry {variable name: value} mappings
VariableDictionary = List[Dict[str, str]]
