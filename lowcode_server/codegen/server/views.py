"""
Template views of entities: their fields and the methods generated from
their enabled module actions.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from lowcode_server.codegen.naming import camel_case
from lowcode_server.codegen.types import (
    CSHARP_TYPES,
    Entity,
    EntityActions,
    EntityField,
    EnumDataType,
    EnumModuleActionType,
    ModuleAction,
)

# Action type -> entity permission action checked by the generated endpoint
PERMISSION_ACTIONS = {
    EnumModuleActionType.CREATE: "Create",
    EnumModuleActionType.READ: "View",
    EnumModuleActionType.FIND: "Search",
    EnumModuleActionType.UPDATE: "Update",
    EnumModuleActionType.DELETE: "Delete",
    EnumModuleActionType.CHILDREN_FIND: "View",
    EnumModuleActionType.CHILDREN_CONNECT: "Update",
    EnumModuleActionType.CHILDREN_DISCONNECT: "Update",
    EnumModuleActionType.CHILDREN_UPDATE: "Update",
}


@dataclass
class FieldView:
    name: str
    cs_type: str
    data_type: EnumDataType
    required: bool
    searchable: bool
    is_system: bool
    is_lookup: bool
    is_to_many: bool
    related: Optional[str] = None
    related_plural: Optional[str] = None

    @property
    def is_id(self) -> bool:
        return self.data_type == EnumDataType.ID

    @property
    def nullable_type(self) -> str:
        return f"{self.cs_type}?"

    @property
    def dto_type(self) -> str:
        if not self.is_lookup:
            return self.cs_type
        if self.is_to_many:
            return f"List<{self.related}WhereUniqueInput>"
        return f"{self.related}WhereUniqueInput"


def field_view(entity_field: EntityField, entities: List[Entity]) -> FieldView:
    related = None
    related_plural = None
    if entity_field.is_lookup:
        related_entity = next(
            (e for e in entities if e.id == entity_field.related_entity_id), None
        )
        related = related_entity.pascal_name if related_entity else "Object"
        related_plural = (
            related_entity.pascal_plural_name if related_entity else "Objects"
        )
    return FieldView(
        name=entity_field.pascal_name,
        cs_type=CSHARP_TYPES.get(entity_field.data_type, "string"),
        data_type=entity_field.data_type,
        required=entity_field.required,
        searchable=entity_field.searchable,
        is_system=entity_field.is_system,
        is_lookup=entity_field.is_lookup,
        is_to_many=entity_field.is_lookup and entity_field.allow_multiple_selection,
        related=related,
        related_plural=related_plural,
    )


def field_views(entity: Entity, entities: List[Entity]) -> List[FieldView]:
    return [field_view(f, entities) for f in entity.fields]


@dataclass
class Parameter:
    type: str
    name: str
    source: str = "Body"


@dataclass
class EntityMethod:
    """A service method and the endpoint that exposes it."""

    action: ModuleAction
    kind: EnumModuleActionType
    name: str
    result_type: Optional[str]
    parameters: List[Parameter] = field(default_factory=list)
    related_field: Optional[FieldView] = None
    roles: List[str] = field(default_factory=list)

    @property
    def return_type(self) -> str:
        return f"Task<{self.result_type}>" if self.result_type else "Task"

    @property
    def signature(self) -> str:
        return ", ".join(f"{p.type} {p.name}" for p in self.parameters)

    @property
    def controller_signature(self) -> str:
        return ", ".join(
            f"[From{p.source}()] {p.type} {p.name}" for p in self.parameters
        )

    @property
    def arguments(self) -> str:
        return ", ".join(p.name for p in self.parameters)

    @property
    def http_attribute(self) -> str:
        return self.action.http_attribute

    @property
    def route(self) -> str:
        return self.action.route


def _roles_for(
    entity: Entity, kind: EnumModuleActionType, all_roles: List[str]
) -> List[str]:
    permission_action = PERMISSION_ACTIONS.get(kind)
    permission = next(
        (p for p in entity.permissions if p.action == permission_action), None
    )
    if permission is None or permission.type == "AllRoles":
        return list(all_roles)
    if permission.type == "Granular":
        return list(permission.roles)
    return []


def _default_method(entity: Entity, action: ModuleAction) -> Optional[EntityMethod]:
    name = entity.pascal_name
    unique = Parameter(f"{name}WhereUniqueInput", "uniqueId", "Route")
    kind = action.action_type
    if kind == EnumModuleActionType.CREATE:
        return EntityMethod(
            action,
            kind,
            action.pascal_name,
            name,
            [Parameter(f"{name}CreateInput", "input")],
        )
    if kind == EnumModuleActionType.FIND:
        return EntityMethod(
            action,
            kind,
            action.pascal_name,
            f"List<{name}>",
            [Parameter(f"{name}FindManyArgs", "findManyArgs", "Query")],
        )
    if kind == EnumModuleActionType.READ:
        return EntityMethod(action, kind, action.pascal_name, name, [unique])
    if kind == EnumModuleActionType.UPDATE:
        return EntityMethod(
            action,
            kind,
            action.pascal_name,
            None,
            [unique, Parameter(f"{name}UpdateInput", "updateDto")],
        )
    if kind == EnumModuleActionType.DELETE:
        return EntityMethod(action, kind, action.pascal_name, None, [unique])
    # Meta actions only have a GraphQL counterpart
    return None


def _related_method(
    entity: Entity, related_field: FieldView, action: ModuleAction
) -> EntityMethod:
    unique = Parameter(f"{entity.pascal_name}WhereUniqueInput", "uniqueId", "Route")
    related = related_field.related
    ids = Parameter(
        f"{related}WhereUniqueInput[]", f"{camel_case(related_field.name)}Ids"
    )
    kind = action.action_type
    if kind == EnumModuleActionType.CHILDREN_FIND:
        return EntityMethod(
            action,
            kind,
            action.pascal_name,
            f"List<{related}>",
            [
                unique,
                Parameter(
                    f"{related}FindManyArgs",
                    f"{camel_case(related)}FindManyArgs",
                    "Query",
                ),
            ],
            related_field,
        )
    return EntityMethod(
        action, kind, action.pascal_name, None, [unique, ids], related_field
    )


def _custom_method(action: ModuleAction) -> EntityMethod:
    input_type = (action.input_type or {}).get("dtoName") or "string"
    output_type = (action.output_type or {}).get("dtoName") or "string"
    return EntityMethod(
        action,
        EnumModuleActionType.CUSTOM,
        action.pascal_name,
        output_type,
        [Parameter(input_type, "input")],
    )


def entity_methods(
    entity: Entity,
    entity_actions: EntityActions,
    entities: List[Entity],
    all_roles: Optional[List[str]] = None,
) -> List[EntityMethod]:
    """Methods of all enabled actions: default, to-many relation, then custom."""
    all_roles = all_roles or []
    methods = []
    for action in entity_actions.entity_default_actions.values():
        if not action.enabled:
            continue
        method = _default_method(entity, action)
        if method is not None:
            method.roles = _roles_for(entity, method.kind, all_roles)
            methods.append(method)

    methods.extend(
        relation_methods(entity, entity_actions, entities, all_roles=all_roles)
    )

    for action in entity_actions.custom_actions:
        if action.enabled:
            methods.append(_custom_method(action))
    return methods


def relation_methods(
    entity: Entity,
    entity_actions: EntityActions,
    entities: List[Entity],
    only_field: Optional[str] = None,
    all_roles: Optional[List[str]] = None,
) -> List[EntityMethod]:
    """Methods of the enabled relation actions of the entity's to-many fields."""
    methods = []
    for lookup in entity.to_many_fields():
        if only_field is not None and lookup.name != only_field:
            continue
        view = field_view(lookup, entities)
        for action in entity_actions.related_fields_default_actions.get(
            lookup.name, {}
        ).values():
            if action.enabled:
                methods.append(_related_method(entity, view, action))
    for method in methods:
        method.roles = _roles_for(entity, method.kind, all_roles or [])
    return methods
