"""Resolve schema nodes into named models registered on a resolution context."""

from __future__ import annotations

import logging
from typing import Optional, assert_never

from .context import ResolutionContext
from .enumerations import discover_enumeration
from .errors import ForwardReferenceError, UnsupportedSchemaError
from .json_types import JSONObject, object_items, optional_string
from .model_types import (
    IntegerEnumeration,
    Model,
    Property,
    StringEnumeration,
    TaggedUnion,
    TypeRef,
)
from .naming import child_name, enum_members, field_name, label_name
from .schema_kinds import (
    AllOfShape,
    ArrayShape,
    BooleanShape,
    IntegerShape,
    NumberShape,
    ObjectShape,
    OneOfShape,
    ReferenceShape,
    StringShape,
    UnsupportedShape,
    classify_schema,
    is_nullable,
)

logger = logging.getLogger(__name__)

# Model names whose plain string schema is a timestamp.
_TIMESTAMP_MODEL_NAMES = frozenset({"DateTime"})


class ModelResolver:
    """Turn schema nodes into models, synthesizing child models for inline shapes."""

    def __init__(self, context: ResolutionContext) -> None:
        self._context = context

    def resolve_schemas(self, schemas: JSONObject) -> None:
        """Resolve ``components.schemas`` in declaration order."""
        for name, node in object_items(schemas):
            self.resolve_model(name, node)

    def resolve_model(self, name: str, node: JSONObject) -> Model:
        """Resolve one schema node into a model and register it.

        Child models synthesized for inline shapes are registered before
        the model itself.

        Args:
            name (str): Unique model name.
            node (JSONObject): Schema node to resolve.

        Returns:
            Model: The registered model.
        """
        shape = classify_schema(node)
        logger.debug("Resolving model %s as %s", name, type(shape).__name__)
        description = optional_string(node.get("description"))

        match shape:
            case ReferenceShape(name=target):
                model = Model(name=name, description=description, alias_type=TypeRef.model(target))
            case StringShape() | IntegerShape():
                model = self._primitive_model(name, node, shape, description)
            case NumberShape():
                model = Model(
                    name=name, description=description, alias_type=TypeRef.primitive("number")
                )
            case BooleanShape():
                model = Model(
                    name=name, description=description, alias_type=TypeRef.primitive("boolean")
                )
            case ArrayShape(items=items):
                element = self._element_type(name, items, owner=name)
                model = Model(name=name, description=description, alias_type=TypeRef.array(element))
            case ObjectShape():
                model = Model(
                    name=name,
                    description=description,
                    properties=tuple(self._resolve_properties(name, shape)),
                )
            case AllOfShape(branches=branches):
                model = Model(
                    name=name,
                    description=description,
                    properties=tuple(self._merge_all_of(name, branches)),
                )
            case OneOfShape(branches=branches):
                model = Model(
                    name=name,
                    description=description,
                    enumeration=TaggedUnion(members=tuple(self._union_members(name, branches))),
                )
            case UnsupportedShape(description=shape_description):
                raise UnsupportedSchemaError(f"Unhandled kind: {shape_description}", model=name)
            case _:
                assert_never(shape)

        self._context.models.insert(model)
        return model

    def resolve_type(
        self,
        hint: str,
        node: JSONObject,
        *,
        owner: str,
        property_name: Optional[str] = None,
    ) -> TypeRef:
        """Resolve the type of a nested schema, synthesizing a model named ``hint`` if needed.

        Args:
            hint (str): Name for a synthesized child model.
            node (JSONObject): Nested schema node.
            owner (str): Owning model name, used in error messages.
            property_name (Optional[str]): Owning property name, used in error messages.

        Returns:
            TypeRef: Reference to a primitive, a model, or a list of either.
        """
        shape = classify_schema(node)
        match shape:
            case ReferenceShape(name=target):
                return TypeRef.model(target)
            case StringShape() | IntegerShape():
                if self._enumeration(hint, node) is None:
                    tag = "string" if isinstance(shape, StringShape) else "integer"
                    return TypeRef.primitive(tag)
                return TypeRef.model(self.resolve_model(hint, node).name)
            case NumberShape():
                return TypeRef.primitive("number")
            case BooleanShape():
                return TypeRef.primitive("boolean")
            case ArrayShape(items=items):
                return TypeRef.array(
                    self._element_type(hint, items, owner=owner, property_name=property_name)
                )
            case ObjectShape() | AllOfShape() | OneOfShape():
                return TypeRef.model(self.resolve_model(hint, node).name)
            case UnsupportedShape(description=shape_description):
                raise UnsupportedSchemaError(
                    f"Unhandled type: {shape_description}",
                    model=owner,
                    property_name=property_name,
                )
            case _:
                assert_never(shape)

    def _primitive_model(
        self,
        name: str,
        node: JSONObject,
        shape: StringShape | IntegerShape,
        description: Optional[str],
    ) -> Model:
        enumeration = self._enumeration(name, node)
        if enumeration is not None:
            enum_members(name, enumeration.values)
            return Model(name=name, description=description, enumeration=enumeration)
        if isinstance(shape, IntegerShape):
            return Model(name=name, description=description, alias_type=TypeRef.primitive("integer"))
        tag = "datetime" if name in _TIMESTAMP_MODEL_NAMES else "string"
        return Model(name=name, description=description, alias_type=TypeRef.primitive(tag))

    def _enumeration(
        self, name: str, node: JSONObject
    ) -> Optional[StringEnumeration | IntegerEnumeration]:
        try:
            enumeration = discover_enumeration(node)
        except UnsupportedSchemaError as exc:
            raise UnsupportedSchemaError(str(exc), model=name) from exc
        if isinstance(enumeration, (StringEnumeration, IntegerEnumeration)):
            return enumeration
        return None

    def _element_type(
        self,
        parent: str,
        items: Optional[JSONObject],
        *,
        owner: str,
        property_name: Optional[str] = None,
    ) -> TypeRef:
        if items is None:
            raise UnsupportedSchemaError(
                "Array schema is missing 'items'",
                model=owner,
                property_name=property_name,
            )
        return self.resolve_type(
            child_name(parent, "Item"),
            items,
            owner=owner,
            property_name=property_name,
        )

    def _resolve_properties(self, owner: str, shape: ObjectShape) -> list[Property]:
        properties: list[Property] = []
        used_names: set[str] = set()
        for source_name, node in shape.properties:
            type_ref = self.resolve_type(
                child_name(owner, source_name),
                node,
                owner=owner,
                property_name=source_name,
            )
            safe_name = field_name(source_name, used_names)
            used_names.add(safe_name)
            properties.append(
                Property(
                    name=source_name,
                    safe_name=safe_name,
                    type=type_ref,
                    required=source_name in shape.required,
                    nullable=is_nullable(node),
                    description=optional_string(node.get("description")),
                )
            )
        return properties

    def _merge_all_of(self, name: str, branches: tuple[JSONObject, ...]) -> list[Property]:
        merged: list[Property] = []
        for branch in branches:
            shape = classify_schema(branch)
            match shape:
                case ReferenceShape(name=target):
                    referenced = self._context.models.get(target)
                    if referenced is None:
                        raise ForwardReferenceError(
                            f"allOf of {name} references {target}, which has not been resolved; "
                            "declare it before the schemas that extend it"
                        )
                    if referenced.properties is None:
                        raise UnsupportedSchemaError(
                            f"allOf branch {target} is not an object model",
                            model=name,
                        )
                    branch_properties = list(referenced.properties)
                case ObjectShape():
                    branch_properties = self._resolve_properties(name, shape)
                case _:
                    raise UnsupportedSchemaError(
                        f"Unhandled allOf branch: {type(shape).__name__}",
                        model=name,
                    )
            self._report_collisions(name, merged, branch_properties)
            merged.extend(branch_properties)
        return merged

    def _report_collisions(
        self,
        name: str,
        merged: list[Property],
        branch_properties: list[Property],
    ) -> None:
        existing = {prop.safe_name for prop in merged}
        for prop in branch_properties:
            if prop.safe_name in existing:
                self._context.warn(
                    f"allOf of {name}: property {prop.name!r} is declared by more than one "
                    "branch; the last declaration wins"
                )

    def _union_members(self, name: str, branches: tuple[JSONObject, ...]) -> list[str]:
        members: list[str] = []
        label_index = 0
        for branch in branches:
            shape = classify_schema(branch)
            if isinstance(shape, ReferenceShape):
                members.append(shape.name)
                continue
            member_name = label_name(name, label_index)
            label_index += 1
            self.resolve_model(member_name, branch)
            members.append(member_name)
        return members
