"""
Server generation: runs every server-level and entity-level event.
"""

from lowcode_server.codegen.events import CreateServerParams, EventNames
from lowcode_server.codegen.module_map import ModuleMap
from lowcode_server.codegen.plugins import plugin_wrapper
from lowcode_server.codegen.server.entity import create_entity_modules
from lowcode_server.codegen.server.infrastructure import (
    create_db_files,
    create_main_file,
    create_secrets_manager,
    create_seed,
    create_server_auth,
    create_swagger,
)
from lowcode_server.codegen.server.message_broker import create_message_broker
from lowcode_server.codegen.server.project_files import (
    create_csproj,
    create_docker_compose,
    create_docker_compose_dev,
    create_dot_env,
    create_git_ignore,
)
from lowcode_server.codegen.server.static_files import create_static_files
from lowcode_server.config import config


async def create_server(context) -> ModuleMap:
    return await plugin_wrapper(
        _create_server, EventNames.CREATE_SERVER, context, CreateServerParams()
    )


async def _create_server(context, params: CreateServerParams) -> ModuleMap:
    modules = ModuleMap(context.logger)

    if config.get_codegen_config().get("static_files", True):
        context.logger.info("Loading static files")
        modules.merge(await create_static_files(context))

    context.logger.info("Creating project files")
    modules.merge(await create_csproj(context))
    modules.merge(await create_dot_env(context))
    modules.merge(await create_git_ignore(context))
    modules.merge(await create_docker_compose(context))
    modules.merge(await create_docker_compose_dev(context))
    modules.merge(await create_secrets_manager(context))
    modules.merge(await create_swagger(context))
    modules.merge(await create_main_file(context))
    modules.merge(await create_server_auth(context))
    modules.merge(await create_message_broker(context))
    modules.merge(create_db_files(context))

    for entity in context.entities:
        context.logger.info(f"Creating modules of entity {entity.name}")
        modules.merge(await create_entity_modules(context, entity))

    context.logger.info("Creating seed data")
    modules.merge(await create_seed(context))
    return modules
