"""Project registry and projects-file loading.

The projects file is INI. Keys before the first section header (or in an
explicit [general] section) configure the server:

    location = /srv/checkouts
    gitpath = /usr/bin/git

    [website]
    repo = octo/website
    branch = main
    command = ./deploy.sh
    secret = s3cr3t

Each other section is one project; the section name is the checkout
directory under `location`. The registry is built once at startup and is
read-only afterwards, so request threads and the executor share it
without locking.
"""

import configparser
import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretBytes, ValidationError

from hubhook.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "master"
DEFAULT_GIT_PATH = "/usr/bin/git"
GENERAL_SECTION = "general"


class Project(BaseModel):
    """One configured repository target."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    repo: str = Field(min_length=1)
    branch: str = Field(default=DEFAULT_BRANCH, min_length=1)
    command: str = Field(min_length=1)
    secret: SecretBytes

    def describe(self) -> str:
        return (
            f"Project(id = {self.id}, repo = {self.repo}, "
            f"branch = {self.branch}, command = {self.command})"
        )


class ProjectRegistry(Mapping):
    """Immutable mapping from repository full name to Project."""

    def __init__(self, projects: Iterable[Project] = ()):
        by_repo: dict[str, Project] = {}
        for project in projects:
            if project.repo in by_repo:
                raise ConfigError(
                    f"Duplicate repository {project.repo} in projects "
                    f"{by_repo[project.repo].id} and {project.id}"
                )
            by_repo[project.repo] = project
        self._projects = MappingProxyType(by_repo)

    def lookup(self, repo: str) -> Optional[Project]:
        return self._projects.get(repo)

    def __getitem__(self, repo: str) -> Project:
        return self._projects[repo]

    def __iter__(self) -> Iterator[str]:
        return iter(self._projects)

    def __len__(self) -> int:
        return len(self._projects)


@dataclass(frozen=True)
class Conf:
    """Validated server configuration shared by the handler and the executor."""

    location: Path
    projects: ProjectRegistry
    gitpath: str = DEFAULT_GIT_PATH

    def checkout_dir(self, project: Project) -> Path:
        return self.location / project.id

    def describe(self) -> str:
        projects = ", ".join(p.describe() for p in self.projects.values())
        return (
            f"Conf(location = {self.location}, gitpath = {self.gitpath}, "
            f"projects = [{projects}])"
        )


def load_conf(path: str | Path) -> Conf:
    """Load and validate the projects file at `path`.

    Raises:
        ConfigError: If the file is unreadable or any required key is missing.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read projects file {path}: {exc}") from exc

    conf = parse_conf(text, source=str(path))
    logger.info("Loaded %d project(s) from %s", len(conf.projects), path)
    return conf


def parse_conf(text: str, source: str = "<string>") -> Conf:
    """Parse projects-file contents. See the module docstring for the format."""
    # Section-less leading keys belong to the general section.
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    try:
        parser.read_string(f"[{GENERAL_SECTION}]\n{text}", source=source)
    except configparser.Error as exc:
        raise ConfigError(f"Cannot parse projects file {source}: {exc}") from exc

    general = parser[GENERAL_SECTION]
    location = general.get("location")
    if not location:
        raise ConfigError("No location found in the general section")

    projects = [
        _project_from_section(name, parser[name])
        for name in parser.sections()
        if name != GENERAL_SECTION
    ]
    return Conf(
        location=Path(location),
        gitpath=general.get("gitpath") or DEFAULT_GIT_PATH,
        projects=ProjectRegistry(projects),
    )


def _project_from_section(name: str, section: configparser.SectionProxy) -> Project:
    secret = section.get("secret") or section.get("key")
    for key, value in (("repo", section.get("repo")), ("command", section.get("command")), ("secret", secret)):
        if not value:
            raise ConfigError(f"No {key} found for project [{name}]")

    try:
        return Project(
            id=name,
            repo=section["repo"],
            branch=section.get("branch") or DEFAULT_BRANCH,
            command=section["command"],
            secret=secret.encode("utf-8"),
        )
    except ValidationError as exc:
        # Report field names only; input values may include the secret.
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise ConfigError(f"Invalid project [{name}]: {fields}") from None
