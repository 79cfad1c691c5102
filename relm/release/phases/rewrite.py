# SPDX-License-Identifier: MIT
"""Descriptor rewrite phases (release, development, branch, versions)."""

from __future__ import annotations

from relm.core.result import Err, Ok, Result
from relm.release.contracts import ReleaseEnvironment
from relm.release.descriptor import ReleaseDescriptor
from relm.release.errors import ReleaseError, validation_error
from relm.release.phases.base import PhaseOutput, ReleasePhase
from relm.release.reactor import Reactor
from relm.release.rewrite import (
    SHADOW_SUFFIXES,
    DescriptorRewriter,
    RewriteMode,
    RewriteOptions,
    VersionMapping,
    remove_shadows,
    write_plan,
)


class RewriteDescriptorsPhase(ReleasePhase):
    """Rewrite every module descriptor for one mode.

    Execute patches the descriptors in place; simulate writes the same
    content next to them (``module.xml.tag`` for a release) and clean
    deletes those shadows.
    """

    def __init__(self, name: str, mode: RewriteMode) -> None:
        super().__init__(name)
        self.mode = mode

    @property
    def shadow_suffix(self) -> str:
        return SHADOW_SUFFIXES[self.mode]

    def _options(
        self, descriptor: ReleaseDescriptor, environment: ReleaseEnvironment, reactor: Reactor
    ) -> Result[RewriteOptions, ReleaseError]:
        config = environment.config
        label: str | None = None
        base: str | None = None
        if self.mode == "release":
            for module in reactor:
                if module.scm is not None:
                    descriptor.original_scm.setdefault(module.key, module.scm)
            label = descriptor.scm_release_label
            base = descriptor.scm_tag_base or config.tag_base
        elif self.mode == "branch":
            label = descriptor.branch_name
            if not label:
                return Err(validation_error("no branch name was given", hint="pass --branch-name"))
            base = descriptor.scm_branch_base or config.branch_base

        return Ok(
            RewriteOptions(
                mode=self.mode,
                mapping=VersionMapping.from_descriptor(descriptor, reactor, self.mode),
                label=label,
                scm_base=base,
                original_scm=dict(descriptor.original_scm),
                line_separator=config.line_separator,
            )
        )

    def _run(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
        *,
        simulate: bool,
    ) -> Result[PhaseOutput, ReleaseError]:
        if self.mode == "development" and not descriptor.update_working_copy_versions:
            return Ok(PhaseOutput.of("working copy versions are not updated"))

        options = self._options(descriptor, environment, reactor)
        if isinstance(options, Err):
            return options

        plan = DescriptorRewriter(options.value).plan(reactor)
        if isinstance(plan, Err):
            return plan

        written = write_plan(plan.value, simulate=simulate)
        if isinstance(written, Err):
            return written

        verb = "wrote" if simulate else "rewrote"
        return Ok(
            PhaseOutput(
                messages=tuple(f"{verb} {p}" for p in written.value),
                warnings=plan.value.warnings,
            )
        )

    def execute(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        return self._run(descriptor, environment, reactor, simulate=False)

    def simulate(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        return self._run(descriptor, environment, reactor, simulate=True)

    def clean(self, reactor: Reactor) -> None:
        remove_shadows(reactor, self.shadow_suffix)
