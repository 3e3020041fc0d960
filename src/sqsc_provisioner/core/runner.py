"""sqsc runner - subprocess boundary to the SquareScale CLI."""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from typing import Self

from pydantic import BaseModel, ConfigDict, PrivateAttr, SecretStr

from sqsc_provisioner.core.decoder import decode_version
from sqsc_provisioner.core.errors import CommandError, PreconditionError

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://www.squarescale.io"


@dataclass(frozen=True, slots=True)
class CommandResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


Executor = Callable[[list[str], dict[str, str]], CommandResult]
EchoCallback = Callable[[str], None]


def subprocess_executor(argv: list[str], env: dict[str, str]) -> CommandResult:
    """Run *argv* and capture its text output."""
    try:
        proc = subprocess.run(argv, capture_output=True, text=True, env=env, check=False)
    except FileNotFoundError as exc:
        raise PreconditionError(f"sqsc CLI not found: {argv[0]}") from exc
    return CommandResult(returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)


class SqscRunner(BaseModel):
    """Invokes the sqsc CLI on behalf of handlers.

    Read-only queries always run.  Mutating calls go through :meth:`mutate`,
    which only echoes the command line when ``dry_run`` is set.

    Examples:
        runner = SqscRunner(token=SecretStr("..."), endpoint="https://www.squarescale.io")
        runner.preflight()

        # Tests inject a fake CLI
        runner = SqscRunner.from_executor(fake, token=SecretStr("t"))
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    binary: str = "sqsc"
    token: SecretStr | None = None
    endpoint: str = DEFAULT_ENDPOINT
    required_version: str | None = None
    dry_run: bool = False

    _executor: Executor = PrivateAttr(default=subprocess_executor)
    _echo: EchoCallback | None = PrivateAttr(default=None)
    _resolved_binary: str | None = PrivateAttr(default=None)

    @classmethod
    def from_executor(cls, executor: Executor, **kwargs: object) -> Self:
        """Create a runner with an injected executor (testing, alternate transports)."""
        runner = cls.model_validate(kwargs)
        runner._executor = executor
        runner._resolved_binary = runner.binary
        return runner

    def on_echo(self, callback: EchoCallback | None) -> None:
        """Register where dry-run command lines are printed."""
        self._echo = callback

    # -- preconditions ------------------------------------------------------

    def check_token(self) -> None:
        if self.token is None or not self.token.get_secret_value():
            raise PreconditionError(
                "You need to set SQSC_TOKEN to an existing and active API key "
                "in your account profile"
            )

    def _binary(self) -> str:
        if self._resolved_binary is None:
            found = shutil.which(self.binary)
            if found is None:
                raise PreconditionError(f"sqsc CLI '{self.binary}' not found in PATH")
            self._resolved_binary = found
        return self._resolved_binary

    def preflight(self) -> None:
        """Check token, binary, CLI version and platform login, in that order."""
        self.check_token()
        self._binary()
        if self.required_version is not None:
            detected = self.version()
            if detected != self.required_version:
                raise PreconditionError(
                    f"sqsc CLI version {self.required_version} required ({detected} detected)"
                )
        if self.query("status").ok:
            return
        logger.info("Not logged in to %s, running login", self.endpoint)
        self.mutate("login")

    def version(self) -> str:
        result = self.query("version")
        if not result.ok:
            raise CommandError([self._binary(), "version"], result.returncode, result.stderr)
        return decode_version(result.stdout)

    # -- invocation ---------------------------------------------------------

    def _env(self) -> dict[str, str]:
        env = dict(os.environ)
        if self.token is not None:
            env["SQSC_TOKEN"] = self.token.get_secret_value()
        env["SQSC_ENDPOINT"] = self.endpoint
        return env

    def query(self, *args: str) -> CommandResult:
        """Run a read-only command. Never echoed, never raises on exit status."""
        self.check_token()
        argv = [self._binary(), *args]
        logger.debug("Running %s", shlex.join(argv))
        result = self._executor(argv, self._env())
        if not result.ok:
            logger.debug("%s exited with %d", shlex.join(argv), result.returncode)
        return result

    def read(self, *args: str) -> str | None:
        """Run a read-only command; ``None`` when it fails (resource absent)."""
        result = self.query(*args)
        return result.stdout if result.ok else None

    def mutate(self, *args: str) -> str:
        """Run a mutating command, or echo it in dry-run mode.

        Raises:
            CommandError: The command exited with a non-zero status.
        """
        self.check_token()
        argv = [self._binary(), *args]
        line = shlex.join(argv)
        if self.dry_run:
            logger.info("Dry run: %s", line)
            if self._echo is not None:
                self._echo(line)
            return ""
        logger.debug("Running %s", line)
        result = self._executor(argv, self._env())
        if not result.ok:
            raise CommandError(argv, result.returncode, result.stderr or result.stdout)
        return result.stdout
