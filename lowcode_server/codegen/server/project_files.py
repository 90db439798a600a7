"""
Project level files of the generated service: the project file, environment
variables, ignore rules and docker compose definitions.
"""

from typing import Any, Dict, List

import yaml

from lowcode_server.codegen.events import (
    CreateServerCsprojParams,
    CreateServerDockerComposeDevParams,
    CreateServerDockerComposeParams,
    CreateServerDotEnvParams,
    CreateServerGitIgnoreParams,
    EventNames,
)
from lowcode_server.codegen.module_map import Module, ModuleMap
from lowcode_server.codegen.naming import kebab_case
from lowcode_server.codegen.plugins import plugin_wrapper
from lowcode_server.codegen.rendering import render_template
from lowcode_server.codegen.types import PackageReference

DEFAULT_PACKAGE_REFERENCES = [
    PackageReference(include="Microsoft.EntityFrameworkCore", version="8.0.4"),
    PackageReference(
        include="Microsoft.EntityFrameworkCore.Design",
        version="8.0.4",
        include_assets=(
            "runtime; build; native; contentfiles; analyzers; buildtransitive"
        ),
        private_assets="all",
    ),
    PackageReference(include="Npgsql.EntityFrameworkCore.PostgreSQL", version="8.0.2"),
    PackageReference(include="Swashbuckle.AspNetCore", version="6.5.0"),
]
AUTH_PACKAGE_REFERENCES = [
    PackageReference(
        include="Microsoft.AspNetCore.Authentication.JwtBearer", version="8.0.4"
    ),
]
BROKER_PACKAGE_REFERENCES = [
    PackageReference(include="Confluent.Kafka", version="2.3.0"),
]
GRPC_PACKAGE_REFERENCES = [
    PackageReference(include="Grpc.AspNetCore", version="2.62.0"),
]

DEFAULT_GITIGNORE_PATHS = [
    "bin/",
    "obj/",
    ".vs/",
    ".vscode/",
    ".idea/",
    "*.user",
    "*.swp",
    ".env",
]


async def create_csproj(context) -> ModuleMap:
    references = list(DEFAULT_PACKAGE_REFERENCES)
    if context.auth_entity is not None:
        references.extend(AUTH_PACKAGE_REFERENCES)
    if context.message_broker is not None:
        references.extend(BROKER_PACKAGE_REFERENCES)
    if context.resource_info.settings.generate_grpc:
        references.extend(GRPC_PACKAGE_REFERENCES)
    params = CreateServerCsprojParams(package_references=references)
    return await plugin_wrapper(
        _create_csproj, EventNames.CREATE_SERVER_CSPROJ, context, params
    )


def _create_csproj(context, params: CreateServerCsprojParams) -> ModuleMap:
    modules = ModuleMap(context.logger)
    code = render_template(
        "csproj.j2",
        ns=context.resource_name,
        package_references=params.package_references,
    )
    path = f"{context.server_directories.src_directory}/{context.resource_name}.csproj"
    modules.set(Module(path, code))
    return modules


def default_env_variables(context) -> List[Dict[str, str]]:
    variables = [
        {"DB_USER": "admin"},
        {"DB_PASSWORD": "admin"},
        {"DB_PORT": "5432"},
        {"DB_NAME": kebab_case(context.resource_info.name)},
        {"PORT": "8080"},
    ]
    if context.auth_entity is not None:
        variables.append({"JWT_SECRET_KEY": "Change_ME!!!"})
        variables.append({"JWT_EXPIRATION": "2d"})
    broker = context.message_broker
    if broker is not None:
        prefix = kebab_case(broker.name).replace("-", "_").upper()
        variables.append({f"{prefix}_BROKERS": "localhost:9092"})
    return variables


async def create_dot_env(context) -> ModuleMap:
    params = CreateServerDotEnvParams(env_variables=default_env_variables(context))
    return await plugin_wrapper(
        _create_dot_env, EventNames.CREATE_SERVER_DOT_ENV, context, params
    )


def _create_dot_env(context, params: CreateServerDotEnvParams) -> ModuleMap:
    modules = ModuleMap(context.logger)
    lines = []
    for variable in params.env_variables:
        for name, value in variable.items():
            lines.append(f"{name}={value}")
    path = f"{context.server_directories.base_directory}/.env"
    modules.set(Module(path, "\n".join(lines) + "\n"))
    return modules


async def create_git_ignore(context) -> ModuleMap:
    params = CreateServerGitIgnoreParams(gitignore_paths=list(DEFAULT_GITIGNORE_PATHS))
    return await plugin_wrapper(
        _create_git_ignore, EventNames.CREATE_SERVER_GIT_IGNORE, context, params
    )


def _create_git_ignore(context, params: CreateServerGitIgnoreParams) -> ModuleMap:
    modules = ModuleMap(context.logger)
    path = f"{context.server_directories.base_directory}/.gitignore"
    modules.set(Module(path, "\n".join(params.gitignore_paths) + "\n"))
    return modules


def apply_update_properties(
    document: Dict[str, Any], update_properties: List[Dict[str, Any]]
) -> Dict[str, Any]:
    """
    Apply {"path": "a.b.c", "value": ...} updates to a parsed YAML document.

    Missing intermediate mappings are created; a None value removes the key.
    """
    for update in update_properties:
        keys = str(update["path"]).split(".")
        node = document
        for key in keys[:-1]:
            child = node.get(key)
            if not isinstance(child, dict):
                child = {}
                node[key] = child
            node = child
        value = update.get("value")
        if value is None:
            node.pop(keys[-1], None)
        else:
            node[keys[-1]] = value
    return document


def _render_compose(file_content: str, update_properties) -> str:
    document = yaml.safe_load(file_content) or {}
    apply_update_properties(document, update_properties)
    return yaml.safe_dump(document, sort_keys=False, default_flow_style=False)


def _server_environment_updates(context) -> List[Dict[str, Any]]:
    updates = []
    if context.auth_entity is not None:
        updates.append(
            {
                "path": "services.server.environment.Jwt__SecretKey",
                "value": "${JWT_SECRET_KEY}",
            }
        )
    return updates


async def create_docker_compose(context) -> ModuleMap:
    params = CreateServerDockerComposeParams(
        file_content=render_template("docker-compose.yml.j2", ns=context.resource_name),
        update_properties=_server_environment_updates(context),
        output_file_name="docker-compose.yml",
    )
    return await plugin_wrapper(
        _create_docker_compose, EventNames.CREATE_SERVER_DOCKER_COMPOSE, context, params
    )


def _create_docker_compose(
    context, params: CreateServerDockerComposeParams
) -> ModuleMap:
    modules = ModuleMap(context.logger)
    code = _render_compose(params.file_content, params.update_properties)
    path = f"{context.server_directories.base_directory}/{params.output_file_name}"
    modules.set(Module(path, code))
    return modules


async def create_docker_compose_dev(context) -> ModuleMap:
    params = CreateServerDockerComposeDevParams(
        file_content=render_template(
            "docker-compose.dev.yml.j2", ns=context.resource_name
        ),
        update_properties=[],
        output_file_name="docker-compose.dev.yml",
    )
    return await plugin_wrapper(
        _create_docker_compose_dev,
        EventNames.CREATE_SERVER_DOCKER_COMPOSE_DEV,
        context,
        params,
    )


def _create_docker_compose_dev(
    context, params: CreateServerDockerComposeDevParams
) -> ModuleMap:
    modules = ModuleMap(context.logger)
    code = _render_compose(params.file_content, params.update_properties)
    path = f"{context.server_directories.base_directory}/{params.output_file_name}"
    modules.set(Module(path, code))
    return modules
