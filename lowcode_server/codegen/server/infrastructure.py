"""
Service infrastructure: entry point, swagger, secrets, authentication,
database context and development seed data.
"""

import posixpath
from typing import Dict, List

from lowcode_server.codegen.events import (
    CreateMainFileParams,
    CreateSeedParams,
    CreateServerAuthParams,
    CreateServerSecretsManagerParams,
    CreateSwaggerParams,
    EventNames,
)
from lowcode_server.codegen.module_map import Module, ModuleMap
from lowcode_server.codegen.naming import pascal_case
from lowcode_server.codegen.plugins import plugin_wrapper
from lowcode_server.codegen.rendering import render_template
from lowcode_server.codegen.server.views import field_views
from lowcode_server.codegen.types import EnumDataType


def _infrastructure_dir(context) -> str:
    return f"{context.server_directories.src_directory}/Infrastructure"


async def create_secrets_manager(context) -> ModuleMap:
    params = CreateServerSecretsManagerParams(secrets_name_key=[])
    return await plugin_wrapper(
        _create_secrets_manager,
        EventNames.CREATE_SERVER_SECRETS_MANAGER,
        context,
        params,
    )


def _create_secrets_manager(
    context, params: CreateServerSecretsManagerParams
) -> ModuleMap:
    modules = ModuleMap(context.logger)
    if not params.secrets_name_key:
        return modules
    code = render_template(
        "secrets_name_key.cs.j2",
        ns=context.resource_name,
        secrets=params.secrets_name_key,
    )
    modules.set(Module(f"{_infrastructure_dir(context)}/SecretsNameKey.cs", code))
    return modules


async def create_swagger(context) -> ModuleMap:
    params = CreateSwaggerParams(
        file_dir=_infrastructure_dir(context),
        output_file_name="SwaggerGenOptionsExtensions.cs",
    )
    return await plugin_wrapper(
        _create_swagger, EventNames.CREATE_SWAGGER, context, params
    )


def _create_swagger(context, params: CreateSwaggerParams) -> ModuleMap:
    modules = ModuleMap(context.logger)
    info = context.resource_info
    code = render_template(
        "swagger.cs.j2",
        ns=context.resource_name,
        title=info.name,
        description=info.description,
        version=info.version,
        has_auth=context.auth_entity is not None,
    )
    modules.set(Module(f"{params.file_dir}/{params.output_file_name}", code))
    return modules


def _broker_name(context):
    broker = context.message_broker
    return pascal_case(broker.name) if broker is not None else None


async def create_main_file(context) -> ModuleMap:
    return await plugin_wrapper(
        _create_main_file, EventNames.CREATE_MAIN_FILE, context, CreateMainFileParams()
    )


def _create_main_file(context, params: CreateMainFileParams) -> ModuleMap:
    modules = ModuleMap(context.logger)
    code = render_template(
        "program.cs.j2",
        ns=context.resource_name,
        entities=context.entities,
        has_auth=context.auth_entity is not None,
        broker=_broker_name(context),
    )
    modules.set(Module(f"{context.server_directories.src_directory}/Program.cs", code))
    return modules


async def create_server_auth(context) -> ModuleMap:
    """Authentication setup, only generated when the service has an auth entity."""
    if context.auth_entity is None:
        return ModuleMap(context.logger)
    return await plugin_wrapper(
        _create_server_auth,
        EventNames.CREATE_SERVER_AUTH,
        context,
        CreateServerAuthParams(),
    )


def _create_server_auth(context, params: CreateServerAuthParams) -> ModuleMap:
    modules = ModuleMap(context.logger)
    auth_dir = f"{_infrastructure_dir(context)}/Auth"
    modules.set(
        Module(
            f"{auth_dir}/AuthenticationExtensions.cs",
            render_template(
                "auth_extensions.cs.j2",
                ns=context.resource_name,
                auth_entity=context.auth_entity.pascal_name,
            ),
        )
    )
    modules.set(
        Module(
            f"{auth_dir}/RolesManager.cs",
            render_template(
                "roles_manager.cs.j2", ns=context.resource_name, roles=context.roles
            ),
        )
    )
    return modules


def create_db_files(context) -> ModuleMap:
    """Database context and one persistence model per entity."""
    modules = ModuleMap(context.logger)
    infrastructure = _infrastructure_dir(context)
    modules.set(
        Module(
            f"{infrastructure}/{context.resource_name}DbContext.cs",
            render_template(
                "db_context.cs.j2", ns=context.resource_name, entities=context.entities
            ),
        )
    )
    for entity in context.entities:
        modules.set(
            Module(
                f"{infrastructure}/Models/{entity.pascal_name}DbModel.cs",
                render_template(
                    "db_model.cs.j2",
                    ns=context.resource_name,
                    entity=entity,
                    fields=field_views(entity, context.entities),
                ),
            )
        )
    return modules


DEFAULT_VALUES = {
    "string": '""',
    "int": "0",
    "double": "0",
    "bool": "false",
    "DateTime": "DateTime.UtcNow",
    "List<string>": "new List<string>()",
}


async def create_seed(context) -> ModuleMap:
    params = CreateSeedParams(
        file_dir=_infrastructure_dir(context),
        output_file_name="SeedDevelopmentData.cs",
        dto_name_to_path=dict(context.dto_name_to_path),
    )
    return await plugin_wrapper(_create_seed, EventNames.CREATE_SEED, context, params)


def _namespaces_for(context, dto_name_to_path: Dict[str, str]) -> List[str]:
    src = context.server_directories.src_directory + "/"
    namespaces = set()
    for path in dto_name_to_path.values():
        if not path.startswith(src):
            continue
        directory = posixpath.dirname(path[len(src):])
        parts = [context.resource_name] + [p for p in directory.split("/") if p]
        namespaces.add(".".join(parts))
    return sorted(namespaces)


def _seed_assignments(context, auth_entity):
    role = context.roles[0].name if context.roles else "user"
    username_field = "Username"
    assignments = []
    for view in field_views(auth_entity, context.entities):
        if view.is_system or view.is_lookup:
            continue
        if view.data_type == EnumDataType.USERNAME:
            username_field = view.name
            value = "username"
        elif view.data_type == EnumDataType.PASSWORD:
            value = 'configuration["Seed:Password"] ?? "admin"'
        elif view.data_type == EnumDataType.ROLES:
            value = f'"[\\"{role}\\"]"'
        elif view.required:
            value = DEFAULT_VALUES.get(view.cs_type, "default!")
        else:
            continue
        assignments.append({"name": view.name, "value": value})
    return username_field, assignments


def _create_seed(context, params: CreateSeedParams) -> ModuleMap:
    modules = ModuleMap(context.logger)
    auth_entity = context.auth_entity
    namespaces = _namespaces_for(context, params.dto_name_to_path)
    username_field, assignments = "Username", []
    if auth_entity is not None:
        namespaces.append(f"{context.resource_name}.Infrastructure.Models")
        username_field, assignments = _seed_assignments(context, auth_entity)
    code = render_template(
        "seed.cs.j2",
        ns=context.resource_name,
        namespaces=namespaces,
        auth_entity=auth_entity,
        username_field=username_field,
        assignments=assignments,
    )
    modules.set(Module(f"{params.file_dir}/{params.output_file_name}", code))
    return modules
