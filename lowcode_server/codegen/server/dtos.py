"""
Data transfer objects generated for each entity.
"""

import posixpath
from typing import Dict, List

from lowcode_server.codegen.events import CreateDTOsParams, EventNames
from lowcode_server.codegen.module_map import Module, ModuleMap
from lowcode_server.codegen.plugins import plugin_wrapper
from lowcode_server.codegen.rendering import render_template
from lowcode_server.codegen.server.views import FieldView, field_views

DTO_SUFFIXES = [
    "",
    "CreateInput",
    "UpdateInput",
    "WhereInput",
    "WhereUniqueInput",
    "FindManyArgs",
]


def dto_base_path(context) -> str:
    return f"{context.server_directories.apis_directory}/Dtos"


async def create_entity_dtos(context, entity) -> ModuleMap:
    """Create the DTOs of an entity and record where each one was written."""
    modules = ModuleMap(context.logger)
    base_path = dto_base_path(context)
    for suffix in DTO_SUFFIXES:
        params = CreateDTOsParams(
            entity=entity,
            dto_name=f"{entity.pascal_name}{suffix}",
            dto_base_path=base_path,
        )
        dto_modules = await plugin_wrapper(
            create_dto, EventNames.CREATE_DTOS, context, params
        )
        for module in dto_modules:
            name, _ = posixpath.splitext(posixpath.basename(module.path))
            context.dto_name_to_path[name] = module.path
        modules.merge(dto_modules)
    return modules


def _property(view: FieldView, required: bool) -> Dict:
    return {
        "name": view.name,
        "type": view.dto_type if required else f"{view.dto_type}?",
        "required": required,
    }


def _dto_properties(suffix: str, views: List[FieldView]) -> List[Dict]:
    if suffix == "WhereUniqueInput":
        return [{"name": "Id", "type": "string", "required": True}]
    if suffix == "CreateInput":
        properties = [{"name": "Id", "type": "string?", "required": False}]
        properties.extend(
            _property(v, v.required) for v in views if not v.is_system
        )
        return properties
    if suffix == "UpdateInput":
        return [_property(v, False) for v in views if not v.is_system]
    if suffix == "WhereInput":
        return [
            _property(v, False)
            for v in views
            if (v.is_id or v.searchable) and not v.is_to_many
        ]
    return [_property(v, v.required or v.is_system) for v in views]


def create_dto(context, params: CreateDTOsParams) -> ModuleMap:
    modules = ModuleMap(context.logger)
    entity = params.entity
    suffix = ""
    if params.dto_name.startswith(entity.pascal_name):
        suffix = params.dto_name[len(entity.pascal_name):]
    if suffix not in DTO_SUFFIXES:
        context.logger.warning(
            f"Unknown DTO {params.dto_name}, generating all fields of {entity.name}",
            {"dto": params.dto_name},
        )
        suffix = ""

    base_class = None
    properties = []
    if suffix == "FindManyArgs":
        name = entity.pascal_name
        base_class = f"FindManyInput<{name}, {name}WhereInput>"
    else:
        properties = _dto_properties(suffix, field_views(entity, context.entities))

    code = render_template(
        "dto.cs.j2",
        ns=context.resource_name,
        class_name=params.dto_name,
        base_class=base_class,
        properties=properties,
    )
    modules.set(Module(f"{params.dto_base_path}/{params.dto_name}.cs", code))
    return modules
