from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Sequence

from wireboot._internal.descriptors import (
    NO_DEFAULT,
    ComponentDescriptor,
    DependencyRequirement,
    PendingRegistration,
)
from wireboot._internal.instantiation import InstantiationService
from wireboot.configuration import DEFAULT_MAX_ITERATIONS, DependencyResolver
from wireboot.exceptions import WireBootGraphResolutionError
from wireboot.scope import ComponentState

logger = logging.getLogger(__name__)


class ResolutionEngine:
    """Resolve and instantiate a set of component descriptors.

    Pending components wait in a FIFO work queue, shortest constructor first.
    The head is instantiated once every requirement is satisfied; otherwise it
    is rotated to the tail. Every rotation counts towards ``max_iterations``,
    which is how cycles and missing providers are detected.

    Each newly registered descriptor (a component, one of its factory products,
    or a pre-supplied instance) is offered to every component still waiting.
    Single requirements keep the first provider offered to them, so the first
    registered match wins. Collection requirements keep growing, including
    after their consumer was instantiated.

    Examples:
        .. code-block:: python

            engine = ResolutionEngine(InstantiationService(), max_iterations=500)
            registered = engine.resolve(ComponentScanner(configuration).scan(types))

    """

    def __init__(
        self,
        instantiation_service: InstantiationService,
        *,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        resolvers: Sequence[DependencyResolver] = (),
    ) -> None:
        self._instantiation_service = instantiation_service
        self._max_iterations = max_iterations
        self._resolvers = tuple(resolvers)

    def resolve(
        self,
        descriptors: Iterable[ComponentDescriptor],
        provided: Iterable[ComponentDescriptor] = (),
    ) -> list[ComponentDescriptor]:
        """Instantiate every descriptor and return them in registration order.

        Args:
            descriptors: Scanned component descriptors.
            provided: Already instantiated descriptors (pre-supplied instances),
                registered before anything else.

        Raises:
            WireBootGraphResolutionError: If the queue rotated
                ``max_iterations`` times without draining.

        """
        descriptors = list(descriptors)
        provided = list(provided)
        queue = deque(
            PendingRegistration.for_descriptor(descriptor)
            for descriptor in sorted(
                descriptors,
                key=lambda descriptor: len(descriptor.constructor_dependencies),
            )
        )

        candidates = [*provided, *descriptors]
        for descriptor in descriptors:
            candidates.extend(descriptor.product_descriptors())
        for pending in queue:
            self._settle_unsatisfiable(pending, candidates)

        registered: list[ComponentDescriptor] = []
        finished: list[PendingRegistration] = []
        for descriptor in provided:
            self._register(descriptor, queue, finished, registered)

        rotations = 0
        while queue:
            pending = queue.popleft()
            if not pending.is_ready():
                queue.append(pending)
                rotations += 1
                if rotations >= self._max_iterations:
                    self._fail(queue)
                continue

            descriptor = pending.descriptor
            descriptor.constructor_requirements = pending.constructor_requirements
            descriptor.member_requirements = pending.member_requirements
            descriptor.state = ComponentState.RESOLVED
            self._instantiation_service.instantiate(
                descriptor,
                pending.constructor_arguments(),
                pending.member_values(),
            )
            self._register(descriptor, queue, finished, registered)
            finished.append(pending)

            for product in descriptor.product_descriptors():
                self._instantiation_service.create_product(product)
                self._register(product, queue, finished, registered)

        logger.debug(
            "Resolved %d component(s) after %d rotation(s)",
            len(registered),
            rotations,
        )
        return registered

    def _register(
        self,
        descriptor: ComponentDescriptor,
        queue: Iterable[PendingRegistration],
        finished: Iterable[PendingRegistration],
        registered: list[ComponentDescriptor],
    ) -> None:
        descriptor.state = ComponentState.REGISTERED
        registered.append(descriptor)
        for pending in queue:
            if pending.offer(descriptor):
                logger.debug("Attached %r to %s", descriptor, pending)

        # Collections captured by already-built consumers keep growing.
        for pending in finished:
            for requirement in pending.requirements():
                if requirement.is_collection and requirement.is_open_for(descriptor):
                    requirement.attach(descriptor)
                    descriptor.add_dependent(pending.descriptor)

    def _settle_unsatisfiable(
        self,
        pending: PendingRegistration,
        candidates: Sequence[ComponentDescriptor],
    ) -> None:
        for requirement in pending.requirements():
            if any(requirement.accepts(candidate) for candidate in candidates):
                continue
            resolver = self._resolver_for(requirement)
            if resolver is not None:
                requirement.resolve_externally(resolver)
            elif requirement.default is not NO_DEFAULT:
                requirement.fall_back_to_default()
            elif requirement.is_collection:
                requirement.close_empty_collection()

    def _resolver_for(self, requirement: DependencyRequirement) -> DependencyResolver | None:
        for resolver in self._resolvers:
            if resolver.can_resolve(requirement):
                return resolver
        return None

    def _fail(self, queue: deque[PendingRegistration]) -> None:
        pending = list(queue)
        for registration in pending:
            registration.descriptor.state = ComponentState.GRAPH_ERROR
        raise WireBootGraphResolutionError(self._max_iterations, pending)
