from __future__ import annotations

from collections.abc import Sequence
from typing import Annotated, ClassVar

import pytest

from wireboot._internal.dependencies import RequirementsExtractor
from wireboot._internal.descriptors import NO_DEFAULT, DependencyRequirement
from wireboot.exceptions import WireBootInvalidComponentError
from wireboot.markers import All, Injected, Qualifier


class ServiceA:
    pass


class ServiceB:
    pass


class Plugin:
    pass


def _describe(requirements: list[DependencyRequirement]) -> list[tuple[str, object, str | None, bool]]:
    return [
        (
            requirement.name,
            requirement.target_type,
            requirement.qualifier,
            requirement.is_collection,
        )
        for requirement in requirements
    ]


def test_extracts_constructor_requirements_in_parameter_order(
    requirements_extractor: RequirementsExtractor,
) -> None:
    class Consumer:
        def __init__(self, first: ServiceA, second: ServiceB) -> None:
            self.first = first
            self.second = second

    requirements = requirements_extractor.extract_from_initializer(Consumer, owner_name="Consumer")

    assert _describe(requirements) == [
        ("first", ServiceA, None, False),
        ("second", ServiceB, None, False),
    ]
    assert all(requirement.required for requirement in requirements)
    assert all(requirement.default is NO_DEFAULT for requirement in requirements)


def test_extracts_qualifier_from_annotated_parameter(
    requirements_extractor: RequirementsExtractor,
) -> None:
    class Consumer:
        def __init__(self, service: Annotated[ServiceA, Qualifier("right")]) -> None:
            self.service = service

    requirements = requirements_extractor.extract_from_initializer(Consumer, owner_name="Consumer")

    assert _describe(requirements) == [("service", ServiceA, "right", False)]


@pytest.mark.parametrize(
    "annotation_name",
    ["all_marker", "builtin_list", "abc_sequence"],
)
def test_collection_annotations_become_collection_requirements(
    requirements_extractor: RequirementsExtractor,
    annotation_name: str,
) -> None:
    class WithAll:
        def __init__(self, plugins: All[Plugin]) -> None:
            self.plugins = plugins

    class WithList:
        def __init__(self, plugins: list[Plugin]) -> None:
            self.plugins = plugins

    class WithSequence:
        def __init__(self, plugins: Sequence[Plugin]) -> None:
            self.plugins = plugins

    consumer = {
        "all_marker": WithAll,
        "builtin_list": WithList,
        "abc_sequence": WithSequence,
    }[annotation_name]

    requirements = requirements_extractor.extract_from_initializer(consumer, owner_name="Consumer")

    assert _describe(requirements) == [("plugins", Plugin, None, True)]
    assert requirements[0].resolved_value == []


def test_qualified_collection_keeps_qualifier(
    requirements_extractor: RequirementsExtractor,
) -> None:
    class Consumer:
        def __init__(self, plugins: All[Annotated[Plugin, Qualifier("core")]]) -> None:
            self.plugins = plugins

    requirements = requirements_extractor.extract_from_initializer(Consumer, owner_name="Consumer")

    assert _describe(requirements) == [("plugins", Plugin, "core", True)]


def test_defaulted_parameters_record_their_default(
    requirements_extractor: RequirementsExtractor,
) -> None:
    class Consumer:
        def __init__(self, retries: int = 3) -> None:
            self.retries = retries

    requirements = requirements_extractor.extract_from_initializer(Consumer, owner_name="Consumer")

    assert [requirement.default for requirement in requirements] == [3]


def test_unannotated_defaulted_parameters_are_skipped(
    requirements_extractor: RequirementsExtractor,
) -> None:
    class Consumer:
        def __init__(self, service: ServiceA, label="consumer", *args, **kwargs) -> None:  # type: ignore[no-untyped-def]
            self.service = service
            self.label = label

    requirements = requirements_extractor.extract_from_initializer(Consumer, owner_name="Consumer")

    assert [requirement.name for requirement in requirements] == ["service"]


def test_unannotated_required_parameter_is_rejected(
    requirements_extractor: RequirementsExtractor,
) -> None:
    class Consumer:
        def __init__(self, service) -> None:  # type: ignore[no-untyped-def]
            self.service = service

    with pytest.raises(WireBootInvalidComponentError, match="'service' in 'Consumer'"):
        requirements_extractor.extract_from_initializer(Consumer, owner_name="Consumer")


def test_extracts_injected_members_only(
    requirements_extractor: RequirementsExtractor,
) -> None:
    class Consumer:
        audit: Injected[ServiceA]
        replica: Injected[Annotated[ServiceB, Qualifier("replica")]]
        plain: ServiceA
        shared: ClassVar[int] = 0

    requirements = requirements_extractor.extract_injected_members(Consumer)

    assert _describe(requirements) == [
        ("audit", ServiceA, None, False),
        ("replica", ServiceB, "replica", False),
    ]


def test_extracts_bound_method_requirements_without_receiver(
    requirements_extractor: RequirementsExtractor,
) -> None:
    class Application:
        def run(self, service: ServiceA) -> None:
            _ = service

        @classmethod
        def configure(cls, plugins: list[Plugin]) -> None:
            _ = plugins

        @staticmethod
        def check(service: ServiceB) -> None:
            _ = service

    application = Application()

    assert _describe(
        requirements_extractor.extract_from_callable(application.run, owner_name="Application.run"),
    ) == [("service", ServiceA, None, False)]
    assert _describe(
        requirements_extractor.extract_from_callable(
            application.configure,
            owner_name="Application.configure",
        ),
    ) == [("plugins", Plugin, None, True)]
    assert _describe(
        requirements_extractor.extract_from_callable(
            application.check,
            owner_name="Application.check",
        ),
    ) == [("service", ServiceB, None, False)]


def test_extracts_product_return_type(requirements_extractor: RequirementsExtractor) -> None:
    class Factory:
        def service(self) -> Annotated[ServiceA, Qualifier("ignored")]:
            return ServiceA()

    assert requirements_extractor.extract_return_type(Factory.service, owner_name="Factory") is ServiceA


def test_product_producer_must_not_take_arguments(
    requirements_extractor: RequirementsExtractor,
) -> None:
    class Factory:
        def service(self, name: str) -> ServiceA:
            _ = name
            return ServiceA()

    with pytest.raises(WireBootInvalidComponentError, match="must take no arguments"):
        requirements_extractor.extract_return_type(Factory.service, owner_name="Factory")


def test_product_producer_needs_return_annotation(
    requirements_extractor: RequirementsExtractor,
) -> None:
    class Factory:
        def service(self):  # type: ignore[no-untyped-def]
            return ServiceA()

    with pytest.raises(WireBootInvalidComponentError, match="needs a return annotation"):
        requirements_extractor.extract_return_type(Factory.service, owner_name="Factory")
