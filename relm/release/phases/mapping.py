# SPDX-License-Identifier: MIT
"""Version mapping phases.

Each module gets a release, development or branch version unless the
descriptor already maps one: versions given on the command line, or decided
by an earlier run that is being resumed, are kept.
"""

from __future__ import annotations

from typing import Literal

from relm.core.result import Err, Ok, Result
from relm.release.contracts import ReleaseEnvironment
from relm.release.descriptor import ReleaseDescriptor
from relm.release.errors import ReleaseError, validation_error
from relm.release.phases.base import PhaseOutput, ReleasePhase
from relm.release.reactor import Reactor
from relm.release.versions import next_development_version, release_version

MappingKind = Literal["release", "development", "branch"]


class MapVersionsPhase(ReleasePhase):
    def __init__(self, name: str, kind: MappingKind) -> None:
        super().__init__(name)
        self.kind = kind

    def execute(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        messages: list[str] = []
        for module in reactor:
            current = module.resolve_property(module.effective_version)
            if not current:
                return Err(validation_error(f"{module.key}: no version to map"))
            descriptor.original_versions.setdefault(module.key, current)

            match self.kind:
                case "release":
                    mapped = descriptor.release_versions.setdefault(module.key, release_version(current))
                case "development":
                    base = descriptor.release_versions.get(module.key, current)
                    mapped = descriptor.development_versions.setdefault(
                        module.key, next_development_version(base)
                    )
                case "branch":
                    mapped = descriptor.release_versions.setdefault(module.key, current)
            messages.append(f"{module.key}: {current} -> {mapped}")

        root = reactor.root
        if self.kind == "release" and root is not None and not descriptor.scm_release_label:
            descriptor.scm_release_label = (
                f"{root.coordinate.artifact}-{descriptor.release_versions[root.key]}"
            )
            messages.append(f"release label: {descriptor.scm_release_label}")

        return Ok(PhaseOutput(messages=tuple(messages)))

    def simulate(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        return self.execute(descriptor, environment, reactor)
