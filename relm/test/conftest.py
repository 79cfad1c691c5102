from __future__ import annotations

from pathlib import Path

import pytest

from relm.core.config import ReleaseConfig
from relm.output.console import MockConsole
from relm.release.contracts import ReleaseEnvironment
from relm.release.descriptor import ReleaseDescriptor
from relm.release.goals import MockGoalRunner
from relm.release.reactor import Reactor, load_reactor
from relm.scm.provider import MockScmProvider, ScmManager

SCM_URL = "scm:git:ssh://git@example.com/app.git"

ROOT_DESCRIPTOR = f"""<?xml version="1.0" encoding="UTF-8"?>
<project>
  <groupId>org.example</groupId>
  <artifactId>app</artifactId>
  <version>1.0-SNAPSHOT</version>
  <scm>
    <connection>scm:git:https://example.com/app.git</connection>
    <developerConnection>{SCM_URL}</developerConnection>
  </scm>
  <modules>
    <module>core</module>
  </modules>
</project>
"""

CORE_DESCRIPTOR = """<?xml version="1.0" encoding="UTF-8"?>
<project>
  <parent>
    <groupId>org.example</groupId>
    <artifactId>app</artifactId>
    <version>1.0-SNAPSHOT</version>
  </parent>
  <artifactId>core</artifactId>
  <dependencies>
    <dependency>
      <groupId>org.example</groupId>
      <artifactId>app</artifactId>
      <version>1.0-SNAPSHOT</version>
      <type>pom</type>
    </dependency>
  </dependencies>
</project>
"""


@pytest.fixture
def console() -> MockConsole:
    return MockConsole()


@pytest.fixture
def environment(console: MockConsole) -> ReleaseEnvironment:
    return ReleaseEnvironment(config=ReleaseConfig(), console=console)


@pytest.fixture
def scm_provider() -> MockScmProvider:
    return MockScmProvider()


@pytest.fixture
def scm_manager(scm_provider: MockScmProvider) -> ScmManager:
    return ScmManager({"git": scm_provider})


@pytest.fixture
def goal_runner() -> MockGoalRunner:
    return MockGoalRunner()


@pytest.fixture
def project(tmp_path: Path) -> Reactor:
    """Two-module project: ``app`` (root) aggregating ``core``."""
    (tmp_path / "module.xml").write_text(ROOT_DESCRIPTOR, encoding="utf-8")
    (tmp_path / "core").mkdir()
    (tmp_path / "core" / "module.xml").write_text(CORE_DESCRIPTOR, encoding="utf-8")
    return load_reactor(tmp_path)


@pytest.fixture
def descriptor(tmp_path: Path) -> ReleaseDescriptor:
    return ReleaseDescriptor(working_directory=tmp_path)
