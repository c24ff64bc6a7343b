from __future__ import annotations

import abc
from typing import Any

import pytest

from wireboot._internal.descriptors import ComponentDescriptor
from wireboot._internal.proxy import build_proxy, is_proxy, proxy_descriptor, proxy_type_for
from wireboot.exceptions import WireBootError, WireBootProxyAlreadySetError
from wireboot.scope import Scope


class Counter:
    def __init__(self, start: int = 0) -> None:
        self.value = start

    def increment(self) -> int:
        self.value += 1
        return self.value

    def __len__(self) -> int:
        return self.value

    def __call__(self, step: int) -> int:
        self.value += step
        return self.value

    def __repr__(self) -> str:
        return f"Counter({self.value})"


class Shape(abc.ABC):
    @abc.abstractmethod
    def area(self) -> float: ...


class Square(Shape):
    def __init__(self, side: float) -> None:
        self.side = side

    def area(self) -> float:
        return self.side * self.side


class Point:
    def __init__(self, x: int) -> None:
        self.x = x

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Point) and other.x == self.x

    def __hash__(self) -> int:
        return hash(self.x)


def _descriptor(contract: type[Any], instance: Any) -> ComponentDescriptor:
    descriptor = ComponentDescriptor(component_type=contract, initializer=contract, scope=Scope.PROXY)
    descriptor.instance = instance
    return descriptor


def test_proxy_is_instance_of_contract_and_forwards_attribute_access() -> None:
    descriptor = _descriptor(Counter, Counter(start=3))

    proxy = build_proxy(descriptor)

    assert isinstance(proxy, Counter)
    assert type(proxy) is not Counter
    assert proxy.value == 3
    assert proxy.increment() == 4
    assert descriptor.instance.value == 4


def test_proxy_forwards_assignment_and_special_methods() -> None:
    descriptor = _descriptor(Counter, Counter())
    proxy = build_proxy(descriptor)

    proxy.value = 10

    assert descriptor.instance.value == 10
    assert len(proxy) == 10
    assert proxy(5) == 15
    assert repr(proxy) == "Counter(15)"


def test_proxy_follows_instance_swaps() -> None:
    descriptor = _descriptor(Counter, Counter(start=1))
    proxy = build_proxy(descriptor)

    descriptor.instance = Counter(start=100)

    assert proxy.value == 100


def test_proxy_without_live_instance_raises() -> None:
    descriptor = _descriptor(Counter, None)
    proxy = build_proxy(descriptor)

    with pytest.raises(WireBootError, match="no live instance"):
        _ = proxy.value


def test_proxy_of_abstract_contract_can_be_created() -> None:
    descriptor = _descriptor(Shape, Square(side=2))

    proxy = build_proxy(descriptor)

    assert isinstance(proxy, Shape)
    assert proxy.area() == 4


def test_proxy_forwards_equality_and_hash_when_contract_defines_them() -> None:
    descriptor = _descriptor(Point, Point(x=7))

    proxy = build_proxy(descriptor)

    assert proxy == Point(x=7)
    assert hash(proxy) == hash(7)


def test_proxy_keeps_identity_hash_for_default_contracts() -> None:
    descriptor = _descriptor(Counter, Counter())
    proxy = build_proxy(descriptor)
    lookup = {proxy: "counter"}

    descriptor.instance = Counter(start=9)

    assert lookup[proxy] == "counter"


def test_proxy_types_are_cached_per_contract() -> None:
    assert proxy_type_for(Counter) is proxy_type_for(Counter)
    assert proxy_type_for(Counter) is not proxy_type_for(Point)


def test_proxy_descriptor_and_is_proxy() -> None:
    descriptor = _descriptor(Counter, Counter())
    proxy = build_proxy(descriptor)

    assert is_proxy(proxy)
    assert not is_proxy(descriptor.instance)
    assert proxy_descriptor(proxy) is descriptor


def test_proxy_instance_can_only_be_set_once() -> None:
    descriptor = _descriptor(Counter, Counter())
    descriptor.proxy_instance = build_proxy(descriptor)

    with pytest.raises(WireBootProxyAlreadySetError):
        descriptor.proxy_instance = build_proxy(descriptor)
