"""
Checkpoint Store
================

File-backed persistence of the last delivered item. A single JSON record
``{"url": ..., "hash": ...}`` is kept at a fixed path and replaced atomically.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Union

from pydantic import ValidationError as PydanticValidationError

from ..models import Checkpoint
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import CheckpointError, ErrorCode


class CheckpointStore:
    """Loads and saves the single checkpoint record."""

    def __init__(self, path: Union[str, Path]):
        """Initialize checkpoint store.

        Args:
            path: Location of the checkpoint file
        """
        self.path = Path(path)
        self.logger = get_logger_for_component("checkpoint_store")

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Checkpoint:
        """Read the checkpoint.

        Returns:
            Stored checkpoint, or an empty one if the file does not exist yet

        Raises:
            CheckpointError: If the file exists but cannot be read or parsed
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self.logger.debug(f"No checkpoint at {self.path}, starting fresh")
            return Checkpoint.empty()
        except OSError as e:
            raise CheckpointError(
                f"Failed to read checkpoint: {e}",
                path=str(self.path),
                error_code=ErrorCode.CHECKPOINT_READ_ERROR,
            ) from e

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("checkpoint record must be a JSON object")
            missing = [key for key in ("url", "hash") if key not in data]
            if missing:
                raise ValueError(f"checkpoint record missing {', '.join(missing)}")
            checkpoint = Checkpoint.model_validate(data)
        except (ValueError, PydanticValidationError) as e:
            raise CheckpointError(
                f"Corrupted checkpoint file: {e}",
                path=str(self.path),
                error_code=ErrorCode.CHECKPOINT_CORRUPTED,
            ) from e

        self.logger.debug(
            "Loaded checkpoint",
            extra={"url": checkpoint.identifier, "hash": checkpoint.fingerprint},
        )
        return checkpoint

    def save(self, identifier: str) -> Checkpoint:
        """Record ``identifier`` as the most recently delivered item.

        The record is written to a temporary file in the same directory and
        moved over the old one, so readers see either the old or the new
        record, never a partial one.

        Raises:
            CheckpointError: If the record could not be written
        """
        checkpoint = Checkpoint.for_identifier(identifier)
        payload = json.dumps(checkpoint.model_dump(by_alias=True), ensure_ascii=False)

        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise CheckpointError(
                f"Failed to write checkpoint: {e}",
                path=str(self.path),
                error_code=ErrorCode.CHECKPOINT_WRITE_ERROR,
            ) from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass

        self.logger.info(
            "Checkpoint advanced",
            extra={"url": checkpoint.identifier, "hash": checkpoint.fingerprint},
        )
        return checkpoint
