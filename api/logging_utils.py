# Copyright 2026 Dell Inc. or its subsidiaries. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Redacting log helpers with one log file per build.

Each accepted build gets ``<IMAGE_PIPELINE_LOG_DIR>/<id>/<id>.log``.
Everything routed there (and to the module logger) passes through the
redaction rules first, so cloud tokens, passwords and addresses never end
up in a build log handed to an operator.
"""

import logging
import os
import re
import traceback
from pathlib import Path
from typing import Dict, List, Optional, Pattern, Tuple, Union

BuildKey = Union[int, str]

DEFAULT_LOG_DIR = "./logs/builds"
SECTION_SEPARATOR = "-" * 80
IDENTIFIER_PREFIX_LENGTH = 8

_FILE_FORMAT = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

_open_loggers: Dict[str, logging.Logger] = {}

_IP = "<REDACTED_IP>"
_TOKEN = "<REDACTED_TOKEN>"

# applied in order; later rules see the output of earlier ones
_REDACTIONS: List[Tuple[Pattern[str], str]] = [
    (re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b"), _IP),
    (re.compile(r"\b(?:[0-9a-fA-F]{1,4}:){2,7}[0-9a-fA-F]{1,4}\b"), _IP),
    (re.compile(r"eyJ[\w-]+\.[\w-]+\.[\w-]+"), _TOKEN),
    (re.compile(r"(?i)(bearer\s+)[\w.-]+"), r"\1" + _TOKEN),
    (re.compile(r"(?i)(x-(?:auth|subject)-token\s*[=:]\s*)[^\s,;\"']+"), r"\1" + _TOKEN),
    (
        re.compile(r"(?i)((?:password|passwd|secret|api_?key|(?:auth_)?token)\s*[=:]\s*)[^\s,;\"']+"),
        r"\1<REDACTED>",
    ),
    (re.compile(r"\b[\w.%+-]+@[\w.-]+\.[A-Za-z]{2,}\b"), "<REDACTED_EMAIL>"),
]


def redact(text: str) -> str:
    """Return text with every sensitive value replaced by a placeholder."""
    for pattern, placeholder in _REDACTIONS:
        text = pattern.sub(placeholder, text)
    return text


def _log_root() -> Path:
    return Path(os.getenv("IMAGE_PIPELINE_LOG_DIR", DEFAULT_LOG_DIR))


def _log_path(key: str) -> Path:
    return _log_root() / key / f"{key}.log"


def _attach_file_logger(key: str, path: Path) -> Optional[logging.Logger]:
    try:
        handler = logging.FileHandler(str(path), mode="a")
    except OSError:
        return None
    handler.setFormatter(_FILE_FORMAT)
    build_logger = logging.getLogger(f"image_pipeline.build.{key}")
    build_logger.setLevel(logging.DEBUG)
    build_logger.propagate = False
    build_logger.addHandler(handler)
    _open_loggers[key] = build_logger
    return build_logger


def _build_logger(key: str) -> Optional[logging.Logger]:
    """Cached logger for a build, reopened only if its directory exists."""
    if key in _open_loggers:
        return _open_loggers[key]
    path = _log_path(key)
    if not path.parent.is_dir():
        return None
    return _attach_file_logger(key, path)


def create_build_log_file(build_id: BuildKey) -> Optional[Path]:
    """Create the log file for build_id and open its logger.

    Returns:
        The log file path, or ``None`` if it could not be created.
    """
    key = str(build_id)
    path = _log_path(key)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch(exist_ok=True)
    except OSError:
        logging.getLogger(__name__).warning("Cannot create log file for build %s", key)
        return None
    if key not in _open_loggers:
        _attach_file_logger(key, path)
    return path


def remove_build_logger(build_id: BuildKey) -> None:
    """Close the file logger of build_id, if one is open."""
    build_logger = _open_loggers.pop(str(build_id), None)
    if build_logger is None:
        return
    for handler in build_logger.handlers[:]:
        build_logger.removeHandler(handler)
        handler.close()


def log_secure_info(
    level: str,
    message: str,
    identifier: Optional[str] = None,
    build_id: Optional[BuildKey] = None,
    exc_info: bool = False,
    end_section: bool = False,
) -> None:
    """Log a redacted message, mirrored to the build log when build_id is set.

    Args:
        level: Logger method name (``info``, ``warning``, ``error`` ...).
        message: Text to log.
        identifier: VM or request id; only its first eight characters are kept.
        build_id: Build whose log file also receives the entry.
        exc_info: Append the traceback of the exception being handled.
        end_section: Close the entry with a separator line in the build log.
    """
    text = message
    if identifier:
        text = f"{text}: {identifier[:IDENTIFIER_PREFIX_LENGTH]}..."
    if exc_info:
        text = f"{text}\n{traceback.format_exc().rstrip()}"
    text = redact(text)

    module_logger = logging.getLogger(__name__)
    getattr(module_logger, level, module_logger.info)(text)

    if build_id is None:
        return
    build_logger = _build_logger(str(build_id))
    if build_logger is None:
        return
    getattr(build_logger, level, build_logger.info)(text)
    if end_section:
        build_logger.info(SECTION_SEPARATOR)
