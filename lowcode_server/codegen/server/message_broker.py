"""
Message broker client generated when the service is connected to a broker.
"""

from lowcode_server.codegen.context import EnumMessagePatternType
from lowcode_server.codegen.events import (
    CreateMessageBrokerClientOptionsFactoryParams,
    CreateMessageBrokerParams,
    CreateMessageBrokerServiceBaseParams,
    CreateMessageBrokerServiceParams,
    CreateMessageBrokerTopicsEnumParams,
    EventNames,
)
from lowcode_server.codegen.module_map import Module, ModuleMap
from lowcode_server.codegen.naming import kebab_case, pascal_case
from lowcode_server.codegen.plugins import plugin_wrapper
from lowcode_server.codegen.rendering import render_template


def _broker_dir(context, broker: str) -> str:
    return f"{context.server_directories.src_directory}/Brokers/{broker}"


def _broker_name(context) -> str:
    return pascal_case(context.message_broker.name)


async def create_message_broker(context) -> ModuleMap:
    if context.message_broker is None:
        return ModuleMap(context.logger)
    return await plugin_wrapper(
        _create_message_broker,
        EventNames.CREATE_MESSAGE_BROKER,
        context,
        CreateMessageBrokerParams(),
    )


async def _create_message_broker(
    context, params: CreateMessageBrokerParams
) -> ModuleMap:
    modules = ModuleMap(context.logger)
    modules.merge(
        await plugin_wrapper(
            _create_topics_enum,
            EventNames.CREATE_MESSAGE_BROKER_TOPICS_ENUM,
            context,
            CreateMessageBrokerTopicsEnumParams(),
        )
    )
    modules.merge(
        await plugin_wrapper(
            _create_client_options_factory,
            EventNames.CREATE_MESSAGE_BROKER_CLIENT_OPTIONS_FACTORY,
            context,
            CreateMessageBrokerClientOptionsFactoryParams(),
        )
    )
    modules.merge(
        await plugin_wrapper(
            _create_service_base,
            EventNames.CREATE_MESSAGE_BROKER_SERVICE_BASE,
            context,
            CreateMessageBrokerServiceBaseParams(),
        )
    )
    modules.merge(
        await plugin_wrapper(
            _create_service,
            EventNames.CREATE_MESSAGE_BROKER_SERVICE,
            context,
            CreateMessageBrokerServiceParams(),
        )
    )
    return modules


def _create_topics_enum(context, params) -> ModuleMap:
    modules = ModuleMap(context.logger)
    broker = _broker_name(context)
    topics = {topic.name: topic for topic in context.broker_topics()}
    code = render_template(
        "broker_topics.cs.j2",
        ns=context.resource_name,
        broker=broker,
        topics=list(topics.values()),
    )
    modules.set(Module(f"{_broker_dir(context, broker)}/Topics.cs", code))
    return modules


def _create_client_options_factory(context, params) -> ModuleMap:
    modules = ModuleMap(context.logger)
    broker = _broker_name(context)
    code = render_template(
        "broker_options_factory.cs.j2",
        ns=context.resource_name,
        broker=broker,
        service_name=kebab_case(context.resource_info.name),
    )
    path = f"{_broker_dir(context, broker)}/{broker}OptionsFactory.cs"
    modules.set(Module(path, code))
    return modules


def _create_service_base(context, params) -> ModuleMap:
    modules = ModuleMap(context.logger)
    broker = _broker_name(context)
    topics = context.broker_topics()
    code = render_template(
        "broker_service_base.cs.j2",
        ns=context.resource_name,
        broker=broker,
        send_topics=[t for t in topics if t.pattern == EnumMessagePatternType.SEND],
        receive_topics=[
            t for t in topics if t.pattern == EnumMessagePatternType.RECEIVE
        ],
    )
    modules.set(Module(f"{_broker_dir(context, broker)}/{broker}ServiceBase.cs", code))
    return modules


def _create_service(context, params) -> ModuleMap:
    modules = ModuleMap(context.logger)
    broker = _broker_name(context)
    code = render_template(
        "broker_service.cs.j2", ns=context.resource_name, broker=broker
    )
    modules.set(Module(f"{_broker_dir(context, broker)}/{broker}Service.cs", code))
    return modules
