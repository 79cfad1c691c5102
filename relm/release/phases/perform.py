# SPDX-License-Identifier: MIT
"""Perform-only phases and the end-of-sequence markers."""

from __future__ import annotations

import shutil

from relm.core.result import Err, Ok, Result
from relm.release.contracts import ReleaseEnvironment
from relm.release.descriptor import ReleaseDescriptor
from relm.release.errors import ReleaseError, execution_error, validation_error
from relm.release.phases.base import PhaseOutput, ReleasePhase
from relm.release.reactor import Reactor
from relm.release.rewrite import remove_shadows


class VerifyReleaseConfigurationPhase(ReleasePhase):
    def __init__(self, name: str = "verify-release-configuration") -> None:
        super().__init__(name)

    def execute(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        if not descriptor.scm_source_url:
            return Err(
                validation_error(
                    "no SCM URL was provided to perform the release from",
                    hint="run prepare first or pass --scm-url",
                )
            )
        return Ok(PhaseOutput.of(f"releasing from {descriptor.scm_source_url}"))

    def simulate(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        return self.execute(descriptor, environment, reactor)


class VerifyCompletedPreparePhasesPhase(ReleasePhase):
    """A stored descriptor must come from a prepare that ran to the end.

    A descriptor without any marker was assembled by hand and is accepted.
    """

    def __init__(self, last_phase: str, name: str = "verify-completed-prepare-phases") -> None:
        super().__init__(name)
        self.last_phase = last_phase

    def execute(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        completed = descriptor.completed_phase
        if completed is not None and completed != self.last_phase:
            return Err(
                validation_error(
                    f"cannot perform release: the preparation stopped after {completed}",
                    hint="resume prepare before performing",
                )
            )
        return Ok(PhaseOutput.of("preparation is complete"))

    def simulate(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        return self.execute(descriptor, environment, reactor)


class CleanupPhase(ReleasePhase):
    """Remove the checkout directory when the perform request asks for it."""

    def __init__(self, name: str = "cleanup") -> None:
        super().__init__(name)

    def execute(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        target = descriptor.checkout_directory
        if not environment.clean_checkout or target is None or not target.exists():
            return Ok(PhaseOutput.of("nothing to clean up"))
        try:
            shutil.rmtree(target)
        except OSError as e:
            return Err(execution_error(f"failed to remove {target}", e))
        return Ok(PhaseOutput.of(f"removed {target}"))


class RemoveReleaseDescriptorsPhase(ReleasePhase):
    """Delete ``.tag`` shadows left behind by an earlier dry run."""

    def __init__(self, suffix: str, name: str = "remove-release-descriptors") -> None:
        super().__init__(name)
        self.suffix = suffix

    def execute(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        try:
            removed = remove_shadows(reactor, self.suffix)
        except OSError as e:
            return Err(execution_error("failed to remove release descriptors", e))
        return Ok(PhaseOutput(messages=tuple(f"removed {p}" for p in removed)))


class EndReleasePhase(ReleasePhase):
    """Marker phase: reaching it means the whole sequence completed."""

    def __init__(self, name: str = "end-release") -> None:
        super().__init__(name)

    def execute(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        return Ok(PhaseOutput.of("release complete"))

    def simulate(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        return self.execute(descriptor, environment, reactor)
