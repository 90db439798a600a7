"""
Service, controller and mapping code generated for each entity.
"""

from lowcode_server.codegen.events import (
    CreateEntityControllerBaseParams,
    CreateEntityControllerParams,
    CreateEntityControllerToManyRelationMethodsParams,
    CreateEntityExtensionsParams,
    CreateEntityGrpcControllerBaseParams,
    CreateEntityGrpcControllerParams,
    CreateEntityInterfaceParams,
    CreateEntityServiceBaseParams,
    CreateEntityServiceParams,
    EventNames,
)
from lowcode_server.codegen.module_map import Module, ModuleMap
from lowcode_server.codegen.plugins import plugin_wrapper
from lowcode_server.codegen.rendering import render_template
from lowcode_server.codegen.server.dtos import create_entity_dtos
from lowcode_server.codegen.server.views import (
    entity_methods,
    field_views,
    relation_methods,
)
from lowcode_server.codegen.types import Entity, build_entity_actions


def _all_roles(context):
    return [role.name for role in context.roles]


def _render(context, template: str, entity: Entity, **values) -> str:
    return render_template(
        template,
        ns=context.resource_name,
        entity=entity,
        name=entity.pascal_name,
        plural=entity.pascal_plural_name,
        has_auth=context.auth_entity is not None,
        **values,
    )


async def create_entity_modules(context, entity: Entity) -> ModuleMap:
    """Run every entity-level event for one entity."""
    modules = ModuleMap(context.logger)
    settings = context.resource_info.settings
    apis_dir = context.server_directories.apis_directory
    entity_actions = build_entity_actions(
        entity, context.module_containers, context.module_actions
    )
    common = {
        "entity": entity,
        "resource_name": context.resource_name,
        "apis_dir": apis_dir,
    }

    modules.merge(await create_entity_dtos(context, entity))
    modules.merge(
        await plugin_wrapper(
            create_entity_interface,
            EventNames.CREATE_ENTITY_INTERFACE,
            context,
            CreateEntityInterfaceParams(
                **common,
                module_containers=context.module_containers,
                module_actions=context.module_actions,
                entities=context.entities,
            ),
        )
    )
    modules.merge(
        await plugin_wrapper(
            create_entity_service_base,
            EventNames.CREATE_ENTITY_SERVICE_BASE,
            context,
            CreateEntityServiceBaseParams(
                **common,
                module_containers=context.module_containers,
                module_actions=context.module_actions,
                entities=context.entities,
            ),
        )
    )
    modules.merge(
        await plugin_wrapper(
            create_entity_service,
            EventNames.CREATE_ENTITY_SERVICE,
            context,
            CreateEntityServiceParams(**common, entity_actions=entity_actions),
        )
    )

    if settings.generate_rest_api:
        modules.merge(
            await plugin_wrapper(
                create_entity_controller_base,
                EventNames.CREATE_ENTITY_CONTROLLER_BASE,
                context,
                CreateEntityControllerBaseParams(
                    **common,
                    module_containers=context.module_containers,
                    entity_actions=entity_actions,
                ),
            )
        )
        modules.merge(
            await plugin_wrapper(
                create_entity_controller,
                EventNames.CREATE_ENTITY_CONTROLLER,
                context,
                CreateEntityControllerParams(**common, entity_actions=entity_actions),
            )
        )
        for lookup in entity.to_many_fields():
            modules.merge(
                await plugin_wrapper(
                    create_to_many_relation_methods,
                    EventNames.CREATE_ENTITY_CONTROLLER_TO_MANY_RELATION_METHODS,
                    context,
                    CreateEntityControllerToManyRelationMethodsParams(
                        field=lookup, entity=entity
                    ),
                )
            )

    modules.merge(
        await plugin_wrapper(
            create_entity_extensions,
            EventNames.CREATE_ENTITY_EXTENSIONS,
            context,
            CreateEntityExtensionsParams(**common),
        )
    )

    if settings.generate_grpc:
        modules.merge(
            await plugin_wrapper(
                create_entity_grpc_controller_base,
                EventNames.CREATE_ENTITY_GRPC_CONTROLLER_BASE,
                context,
                CreateEntityGrpcControllerBaseParams(entity=entity),
            )
        )
        modules.merge(
            await plugin_wrapper(
                create_entity_grpc_controller,
                EventNames.CREATE_ENTITY_GRPC_CONTROLLER,
                context,
                CreateEntityGrpcControllerParams(entity=entity),
            )
        )
    return modules


def create_entity_interface(context, params: CreateEntityInterfaceParams) -> ModuleMap:
    modules = ModuleMap(context.logger)
    entity = params.entity
    actions = build_entity_actions(
        entity, params.module_containers, params.module_actions
    )
    methods = entity_methods(entity, actions, params.entities, _all_roles(context))
    code = _render(context, "entity_interface.cs.j2", entity, methods=methods)
    path = f"{params.apis_dir}/I{entity.pascal_plural_name}Service.cs"
    modules.set(Module(path, code))
    return modules


def create_entity_service_base(
    context, params: CreateEntityServiceBaseParams
) -> ModuleMap:
    modules = ModuleMap(context.logger)
    entity = params.entity
    actions = build_entity_actions(
        entity, params.module_containers, params.module_actions
    )
    methods = entity_methods(entity, actions, params.entities, _all_roles(context))
    code = _render(context, "entity_service_base.cs.j2", entity, methods=methods)
    path = f"{params.apis_dir}/Base/{entity.pascal_plural_name}ServiceBase.cs"
    modules.set(Module(path, code))
    return modules


def create_entity_service(context, params: CreateEntityServiceParams) -> ModuleMap:
    modules = ModuleMap(context.logger)
    entity = params.entity
    code = _render(context, "entity_service.cs.j2", entity)
    path = f"{params.apis_dir}/{entity.pascal_plural_name}Service.cs"
    modules.set(Module(path, code))
    return modules


def create_entity_controller_base(
    context, params: CreateEntityControllerBaseParams
) -> ModuleMap:
    modules = ModuleMap(context.logger)
    entity = params.entity
    # relation endpoints live in their own partial class files
    methods = [
        method
        for method in entity_methods(
            entity, params.entity_actions, context.entities, _all_roles(context)
        )
        if method.related_field is None
    ]
    code = _render(context, "entity_controller_base.cs.j2", entity, methods=methods)
    path = f"{params.apis_dir}/Base/{entity.pascal_plural_name}ControllerBase.cs"
    modules.set(Module(path, code))
    return modules


def create_entity_controller(
    context, params: CreateEntityControllerParams
) -> ModuleMap:
    modules = ModuleMap(context.logger)
    entity = params.entity
    code = _render(context, "entity_controller.cs.j2", entity)
    path = f"{params.apis_dir}/{entity.pascal_plural_name}Controller.cs"
    modules.set(Module(path, code))
    return modules


def create_to_many_relation_methods(
    context, params: CreateEntityControllerToManyRelationMethodsParams
) -> ModuleMap:
    modules = ModuleMap(context.logger)
    entity = params.entity
    actions = build_entity_actions(
        entity, context.module_containers, context.module_actions
    )
    methods = relation_methods(
        entity,
        actions,
        context.entities,
        only_field=params.field.name,
        all_roles=_all_roles(context),
    )
    if not methods:
        return modules
    code = _render(context, "entity_relation_methods.cs.j2", entity, methods=methods)
    path = (
        f"{context.server_directories.apis_directory}/Base/"
        f"{entity.pascal_plural_name}ControllerBase.{params.field.pascal_name}.cs"
    )
    modules.set(Module(path, code))
    return modules


def create_entity_extensions(
    context, params: CreateEntityExtensionsParams
) -> ModuleMap:
    modules = ModuleMap(context.logger)
    entity = params.entity
    code = _render(
        context,
        "entity_extensions.cs.j2",
        entity,
        fields=field_views(entity, context.entities),
    )
    path = f"{params.apis_dir}/Extensions/{entity.pascal_plural_name}Extensions.cs"
    modules.set(Module(path, code))
    return modules


def _grpc_dir(context) -> str:
    return f"{context.server_directories.src_directory}/Grpc"


def create_entity_grpc_controller_base(
    context, params: CreateEntityGrpcControllerBaseParams
) -> ModuleMap:
    modules = ModuleMap(context.logger)
    entity = params.entity
    actions = build_entity_actions(
        entity, context.module_containers, context.module_actions
    )
    methods = [
        method
        for method in entity_methods(entity, actions, context.entities)
        if method.related_field is None
    ]
    code = _render(
        context, "entity_grpc_controller_base.cs.j2", entity, methods=methods
    )
    path = f"{_grpc_dir(context)}/{entity.pascal_plural_name}GrpcControllerBase.cs"
    modules.set(Module(path, code))
    return modules


def create_entity_grpc_controller(
    context, params: CreateEntityGrpcControllerParams
) -> ModuleMap:
    modules = ModuleMap(context.logger)
    entity = params.entity
    code = _render(context, "entity_grpc_controller.cs.j2", entity)
    path = f"{_grpc_dir(context)}/{entity.pascal_plural_name}GrpcController.cs"
    modules.set(Module(path, code))
    return modules
