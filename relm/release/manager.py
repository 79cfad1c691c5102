"""Release manager: drives phase sequences.

``prepare`` is resumable: after every successful phase the descriptor's
``completed_phase`` marker is advanced and the descriptor is persisted, so a
later ``prepare`` with ``resume=True`` skips everything up to and including
the marker. Without ``resume`` the store is never read: the release starts
from the supplied descriptor. The other operations run their sequence in
full.

Usage:
    manager = ReleaseManager(build_default_registry(scm, runner), JsonDescriptorStore())
    result = manager.prepare(PrepareRequest(descriptor, environment, reactor))
    match result:
        case Ok(outcome):
            print(outcome.phases_run)
        case Err(error):
            print(error.pretty())
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime

from relm.core.result import Err, Ok, Result
from relm.output.console import Style
from relm.release.contracts import (
    CleanRequest,
    PerformRequest,
    PrepareRequest,
    ReleaseEnvironment,
    ReleaseRequest,
    ReleaseResult,
)
from relm.release.descriptor import ReleaseDescriptor
from relm.release.errors import ReleaseError, execution_error
from relm.release.listener import ReleaseListener
from relm.release.phases.base import PhaseOutput
from relm.release.reactor import Reactor
from relm.release.sequences import PhaseRegistry, UnknownPhaseError
from relm.release.store import DescriptorStore, DescriptorStoreError
from relm.release.xmldoc import DescriptorParseError
from relm.scm.provider import ScmException

__all__ = ["ReleaseManager"]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ReleaseManager:
    """Runs prepare, perform, clean, rollback, branch and update-versions.

    Attributes:
        registry: Phase instances and sequences.
        store: Descriptor persistence; None runs without loading or saving.
    """

    def __init__(
        self,
        registry: PhaseRegistry,
        store: DescriptorStore | None = None,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.registry = registry
        self.store = store
        self._clock = clock

    def prepare(self, request: PrepareRequest) -> Result[ReleaseResult, ReleaseError]:
        return self._run(
            "prepare",
            descriptor=request.descriptor,
            environment=request.environment,
            reactor=request.reactor,
            listener=request.listener,
            dry_run=request.dry_run,
            load=request.resume and not request.descriptor_supplied,
            resume=request.resume,
            persist=True,
        )

    def perform(self, request: PerformRequest) -> Result[ReleaseResult, ReleaseError]:
        environment = replace(request.environment, clean_checkout=request.clean)
        return self._run(
            "perform",
            descriptor=request.descriptor,
            environment=environment,
            reactor=request.reactor,
            listener=request.listener,
            dry_run=request.dry_run,
            load=not request.descriptor_supplied,
        )

    def rollback(self, request: ReleaseRequest) -> Result[ReleaseResult, ReleaseError]:
        return self._run_fixed("rollback", request)

    def branch(self, request: ReleaseRequest) -> Result[ReleaseResult, ReleaseError]:
        return self._run_fixed("branch", request)

    def update_versions(self, request: ReleaseRequest) -> Result[ReleaseResult, ReleaseError]:
        return self._run_fixed("update-versions", request)

    def clean(self, request: CleanRequest) -> Result[ReleaseResult, ReleaseError]:
        """Remove every simulate artifact and the stored descriptor."""
        start = self._clock()
        try:
            phases = self.registry.resolve("clean")
        except UnknownPhaseError as e:
            return Err(execution_error("cannot resolve the clean sequence", e))

        for phase in phases:
            try:
                phase.clean(request.reactor)
            except OSError as e:
                return Err(execution_error(f"failed to clean {phase.name}", e))

        if self.store is not None:
            try:
                self.store.delete(request.descriptor)
            except DescriptorStoreError as e:
                return Err(execution_error("failed to delete the release descriptor", e))

        request.environment.console.print("release files removed", Style.DIM)
        return Ok(
            ReleaseResult(
                operation="clean",
                success=True,
                phases_run=tuple(p.name for p in phases),
                output=(),
                start_time=start,
                end_time=self._clock(),
            )
        )

    def _run_fixed(self, operation: str, request: ReleaseRequest) -> Result[ReleaseResult, ReleaseError]:
        return self._run(
            operation,
            descriptor=request.descriptor,
            environment=request.environment,
            reactor=request.reactor,
            listener=request.listener,
            dry_run=request.dry_run,
            load=not request.descriptor_supplied,
        )

    def _load(self, descriptor: ReleaseDescriptor) -> Result[ReleaseDescriptor, ReleaseError]:
        if self.store is None:
            return Ok(descriptor)
        try:
            loaded = self.store.read(descriptor)
        except DescriptorStoreError as e:
            return Err(execution_error("failed to read the release descriptor", e))
        return Ok(loaded if loaded is not None else descriptor)

    def _run(
        self,
        operation: str,
        *,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
        listener: ReleaseListener,
        dry_run: bool,
        load: bool,
        resume: bool = False,
        persist: bool = False,
    ) -> Result[ReleaseResult, ReleaseError]:
        start = self._clock()

        if load:
            loaded = self._load(descriptor)
            if isinstance(loaded, Err):
                return loaded
            descriptor = loaded.value

        try:
            phases = self.registry.resolve(operation)
        except UnknownPhaseError as e:
            return Err(execution_error(f"cannot resolve the {operation} sequence", e))

        names = [p.name for p in phases]
        skip_through = -1
        completed = descriptor.completed_phase
        if resume and completed is not None and completed in names:
            skip_through = names.index(completed)

        env = environment.with_listener(listener)
        phases_run: list[str] = []
        output: list[str] = []

        for index, phase in enumerate(phases):
            if index <= skip_through:
                continue

            listener.phase_start(phase.name)
            try:
                if dry_run:
                    result = phase.simulate(descriptor, env, reactor)
                else:
                    result = phase.execute(descriptor, env, reactor)
            except (DescriptorStoreError, ScmException, DescriptorParseError, OSError) as e:
                result = Err(execution_error(f"{phase.name} failed", e))
            except Exception as e:  # noqa: BLE001
                result = Err(execution_error(f"{phase.name} failed unexpectedly: {e}", e))
            listener.phase_end()

            if isinstance(result, Err):
                return Err(result.error.in_phase(phase.name, descriptor.completed_phase))

            phases_run.append(phase.name)
            output.extend(self._report(env, result.value))

            if persist:
                descriptor.completed_phase = phase.name
                if self.store is not None:
                    try:
                        self.store.write(descriptor)
                    except DescriptorStoreError as e:
                        error = execution_error("failed to write the release descriptor", e)
                        return Err(error.in_phase(phase.name, descriptor.completed_phase))

        return Ok(
            ReleaseResult(
                operation=operation,
                success=True,
                phases_run=tuple(phases_run),
                output=tuple(output),
                start_time=start,
                end_time=self._clock(),
            )
        )

    def _report(self, environment: ReleaseEnvironment, output: PhaseOutput) -> list[str]:
        console = environment.console
        for message in output.messages:
            console.print(f"  {message}", Style.DIM)
        for warning in output.warnings:
            console.warning(warning)
        return [*output.messages, *output.warnings]
