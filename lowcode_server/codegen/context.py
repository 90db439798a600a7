"""
Input data and shared state of a service generation build.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from lowcode_server.codegen.build_logger import BuildLogger
from lowcode_server.codegen.module_map import ModuleMap
from lowcode_server.codegen.naming import kebab_case, pascal_case
from lowcode_server.codegen.plugins import PluginInstallation, PluginRegistry
from lowcode_server.codegen.types import (
    CamelModel,
    Entity,
    ModuleAction,
    ModuleContainer,
)

MESSAGE_BROKER_RESOURCE_TYPE = "MessageBroker"


class ServiceSettings(CamelModel):
    auth_entity_name: Optional[str] = None
    server_path: str = ""
    generate_rest_api: bool = True
    generate_grpc: bool = False


class ResourceInfo(CamelModel):
    id: str
    name: str
    description: str = ""
    version: str = "1.0.0"
    settings: ServiceSettings = ServiceSettings()


class Topic(CamelModel):
    id: str
    name: str
    display_name: str = ""


class OtherResource(CamelModel):
    """Another resource of the project, e.g. a connected message broker."""

    id: str
    name: str
    resource_type: str
    topics: List[Topic] = []


class EnumMessagePatternType(str, Enum):
    SEND = "Send"
    RECEIVE = "Receive"


class MessagePattern(CamelModel):
    topic_id: str
    type: EnumMessagePatternType


class ServiceTopics(CamelModel):
    """How the service uses the topics of one message broker."""

    message_broker_id: str
    enabled: bool = True
    patterns: List[MessagePattern] = []


class Role(CamelModel):
    name: str
    display_name: str = ""


class DsgResourceData(CamelModel):
    """Everything the generator needs to know about a service resource."""

    resource_info: ResourceInfo
    entities: List[Entity] = []
    module_containers: List[ModuleContainer] = []
    module_actions: List[ModuleAction] = []
    plugin_installations: List[PluginInstallation] = []
    other_resources: List[OtherResource] = []
    service_topics: List[ServiceTopics] = []
    roles: List[Role] = []


@dataclass
class ServerDirectories:
    base_directory: str
    src_directory: str
    apis_directory: str


@dataclass
class BrokerTopic:
    name: str
    pascal_name: str
    pattern: EnumMessagePatternType


class DsgContext:
    """
    State shared by all generators of one build.
    """

    def __init__(
        self,
        data: DsgResourceData,
        registry: PluginRegistry,
        logger: Optional[BuildLogger] = None,
    ):
        self.resource_info = data.resource_info
        self.entities = data.entities
        self.module_containers = data.module_containers
        self.module_actions = data.module_actions
        self.plugin_installations = data.plugin_installations
        self.other_resources = data.other_resources
        self.service_topics = data.service_topics
        self.roles = data.roles
        self.registry = registry
        self.logger = logger or BuildLogger()
        self.modules = ModuleMap(self.logger)
        self.dto_name_to_path: Dict[str, str] = {}

        self.resource_name = pascal_case(self.resource_info.name)
        base = self.resource_info.settings.server_path.strip("/") or (
            f"apps/{kebab_case(self.resource_info.name)}"
        )
        src = f"{base}/src"
        self.server_directories = ServerDirectories(
            base_directory=base, src_directory=src, apis_directory=f"{src}/APIs"
        )

    @property
    def auth_entity(self) -> Optional[Entity]:
        name = self.resource_info.settings.auth_entity_name
        if not name:
            return None
        return next((e for e in self.entities if e.name == name), None)

    @property
    def message_broker(self) -> Optional[OtherResource]:
        """The message broker this service is connected to, if any."""
        brokers = {
            r.id: r
            for r in self.other_resources
            if r.resource_type == MESSAGE_BROKER_RESOURCE_TYPE
        }
        for connection in self.service_topics:
            if connection.enabled and connection.message_broker_id in brokers:
                return brokers[connection.message_broker_id]
        return None

    def broker_topics(self) -> List[BrokerTopic]:
        """Topics of the connected broker the service sends or receives on."""
        broker = self.message_broker
        if broker is None:
            return []
        topics = {t.id: t for t in broker.topics}
        result = []
        for connection in self.service_topics:
            if not connection.enabled or connection.message_broker_id != broker.id:
                continue
            for pattern in connection.patterns:
                topic = topics.get(pattern.topic_id)
                if topic is not None:
                    result.append(
                        BrokerTopic(
                            name=topic.name,
                            pascal_name=pascal_case(topic.name),
                            pattern=pattern.type,
                        )
                    )
        return result

    def get_plugin_settings(self, plugin_id: str) -> Dict[str, Any]:
        """Settings of an installed plugin, for its hooks to read."""
        for installation in self.plugin_installations:
            if installation.plugin_id == plugin_id:
                return installation.settings
        return {}
