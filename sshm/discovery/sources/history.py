"""
Shell history source.

Recognises ``ssh`` invocations in bash, zsh (plain and extended) and fish
history files. The destination may be ``host``, ``user@host``,
``host:port`` or ``ssh://[user@]host[:port]``; ``-p``, ``-l`` and
``-o Port=``/``-o User=`` are honoured. A username written on the command
line is STRONG evidence.

Later lines are more recent, so ``seen_order`` follows line order.
"""

from __future__ import annotations

import os
import re
import shlex
from collections.abc import Iterable, Iterator

from loguru import logger

from sshm.core.exceptions import InvalidAddressError, ParseSkip
from sshm.core.types import Confidence, SourceKind
from sshm.discovery.identity import split_host_port
from sshm.discovery.models import RawCandidate
from sshm.discovery.sources.base import BaseSource, ParseStats, iter_lines

# zsh EXTENDED_HISTORY: ": 1700000000:0;command"
_ZSH_EXTENDED = re.compile(r"^: ?\d+:\d+;(.*)$")
# fish: "- cmd: command"
_FISH_COMMAND = re.compile(r"^- cmd: (.*)$")
_COMMAND_SEPARATORS = re.compile(r"&&|\|\||[;|]")
_ENV_ASSIGNMENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*=")

_WRAPPERS = {"sudo", "exec", "time", "command", "nohup", "env", "noglob"}
# ssh options that consume an argument
_OPTIONS_WITH_ARGUMENT = set("BbcDEeFIiJLlmOoPpQRSWw")
_NOT_A_HOST = set("$`/{}()<>*")


def _extract_command(line: str) -> str:
    m = _ZSH_EXTENDED.match(line)
    if m:
        return m.group(1)
    m = _FISH_COMMAND.match(line)
    if m:
        return m.group(1)
    return line


def _tokenize(segment: str) -> list[str]:
    try:
        return shlex.split(segment)
    except ValueError:
        return segment.split()


def _ssh_arguments(segment: str) -> list[str] | None:
    """Arguments following ``ssh`` in one shell command, or None."""
    if "ssh" not in segment:
        return None
    tokens = _tokenize(segment)
    while tokens and (tokens[0] in _WRAPPERS or _ENV_ASSIGNMENT.match(tokens[0])):
        tokens = tokens[1:]
    if tokens and os.path.basename(tokens[0]) == "ssh":
        return tokens[1:]
    return None


def _apply_option(option: str, value: str, found: dict[str, str]) -> None:
    if option == "p":
        found.setdefault("opt_port", value)
    elif option == "l":
        found.setdefault("opt_user", value)
    elif option == "o":
        name, sep, setting = value.partition("=")
        if not sep:
            name, _, setting = value.partition(" ")
        name = name.strip().lower()
        setting = setting.strip()
        if name == "port":
            found.setdefault("conf_port", setting)
        elif name == "user":
            found.setdefault("conf_user", setting)


def _parse_arguments(args: list[str]) -> dict[str, str]:
    """Walk ssh's argv and pull out destination, users and ports."""
    found: dict[str, str] = {}
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--":
            if i + 1 < len(args):
                found["destination"] = args[i + 1]
            break
        if arg.startswith("-") and len(arg) > 1:
            # Flags may be clustered (-tt, -vp 2222, -p2222)
            for j in range(1, len(arg)):
                if arg[j] not in _OPTIONS_WITH_ARGUMENT:
                    continue
                value = arg[j + 1:]
                if not value:
                    i += 1
                    if i >= len(args):
                        raise ParseSkip(f"option -{arg[j]} without argument")
                    value = args[i]
                _apply_option(arg[j], value, found)
                break
            i += 1
            continue
        found["destination"] = arg
        break
    return found


def _parse_port(value: str) -> int:
    if not value.isdigit():
        raise ParseSkip(f"invalid port {value!r}")
    return int(value)


class ShellHistorySource(BaseSource):
    """Parse shell history files for ssh commands."""

    kind = SourceKind.SHELL_HISTORY
    read_tail = True

    def parse(
        self,
        text: str | Iterable[str],
        stats: ParseStats | None = None,
    ) -> Iterator[RawCandidate]:
        stats = stats if stats is not None else ParseStats()
        for line in iter_lines(text):
            stats.lines += 1
            command = _extract_command(line.strip())
            if "ssh" not in command:
                continue
            for segment in _COMMAND_SEPARATORS.split(command):
                args = _ssh_arguments(segment)
                if args is None:
                    continue
                try:
                    candidate = self._candidate(args, segment.strip(), stats.lines)
                except ParseSkip as e:
                    stats.skipped += 1
                    logger.trace(f"history line {stats.lines} skipped: {e.message}")
                    continue
                yield candidate

    def _candidate(self, args: list[str], command: str, order: int) -> RawCandidate:
        found = _parse_arguments(args)
        destination = found.get("destination")
        if not destination:
            raise ParseSkip("no destination")

        dest_port: int | None = None
        if destination.startswith("ssh://"):
            destination = destination[len("ssh://"):].rstrip("/")

        user, sep, address = destination.rpartition("@")
        if not sep:
            user, address = "", destination

        if _NOT_A_HOST.intersection(address):
            raise ParseSkip(f"not a host: {address!r}")
        try:
            address, dest_port = split_host_port(address)
        except InvalidAddressError as e:
            raise ParseSkip(e.message) from None

        if dest_port is None and "opt_port" in found:
            dest_port = _parse_port(found["opt_port"])
        elif dest_port is None and "conf_port" in found:
            dest_port = _parse_port(found["conf_port"])

        username = user or found.get("opt_user") or found.get("conf_user") or ""

        return RawCandidate(
            address=address,
            port=dest_port,
            username=username,
            confidence=Confidence.STRONG if username else Confidence.NONE,
            source_kind=self.kind,
            source_detail=command[:80],
            seen_order=order,
        )
