# tracelog/shared/rotation.py
"""
Size-based rotating file sink with timestamped, compressed backups.

The active file is always ``<stem><ext>`` (e.g. ``svc.log``). On rollover it
is renamed to ``<stem>-<timestamp><ext>``, optionally gzipped, and old
backups are pruned by count and by age.
"""

import gzip
import os
import shutil
from datetime import datetime, timedelta, timezone
from logging.handlers import RotatingFileHandler
from typing import List, Optional, Tuple

BACKUP_TIME_FORMAT = "%Y-%m-%dT%H-%M-%S.%f"
COMPRESSED_SUFFIX = ".gz"


class CompressingRotatingFileHandler(RotatingFileHandler):
    """
    RotatingFileHandler variant with timestamped backup names, gzip
    compression and MAX_BACKUPS / MAX_AGE_DAYS retention.

    A value of 0 for ``backup_count`` or ``max_age_days`` disables that
    retention rule.
    """

    def __init__(
        self,
        filename: str,
        max_bytes: int,
        backup_count: int,
        max_age_days: int,
        compress: bool = True,
        local_time: bool = True,
        encoding: str = "utf-8",
    ):
        super().__init__(
            filename,
            mode="a",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding=encoding,
            delay=True,
        )
        self.max_age_days = max_age_days
        self.compress = compress
        self.local_time = local_time

        directory, basename = os.path.split(self.baseFilename)
        stem, ext = os.path.splitext(basename)
        self._directory = directory
        self._prefix = f"{stem}-"
        self._ext = ext

    def _now(self) -> datetime:
        if self.local_time:
            return datetime.now()
        return datetime.now(timezone.utc).replace(tzinfo=None)

    def backup_filename(self, when: datetime) -> str:
        name = f"{self._prefix}{when.strftime(BACKUP_TIME_FORMAT)}{self._ext}"
        return os.path.join(self._directory, name)

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
            self.stream = None

        if os.path.exists(self.baseFilename) and os.path.getsize(self.baseFilename) > 0:
            backup = self.backup_filename(self._now())
            os.replace(self.baseFilename, backup)
            if self.compress:
                self._compress(backup)

        self.prune_backups()

        if not self.delay:
            self.stream = self._open()

    def _compress(self, path: str) -> None:
        with open(path, "rb") as src, gzip.open(path + COMPRESSED_SUFFIX, "wb") as dst:
            shutil.copyfileobj(src, dst)
        os.remove(path)

    def _parse_backup(self, name: str) -> Optional[datetime]:
        """Returns the backup timestamp, or None if ``name`` is not one of ours."""
        if name.endswith(COMPRESSED_SUFFIX):
            name = name[: -len(COMPRESSED_SUFFIX)]
        if not (name.startswith(self._prefix) and name.endswith(self._ext)):
            return None
        stamp = name[len(self._prefix): len(name) - len(self._ext)]
        try:
            return datetime.strptime(stamp, BACKUP_TIME_FORMAT)
        except ValueError:
            return None

    def list_backups(self) -> List[Tuple[datetime, str]]:
        """Backups on disk as (timestamp, path), newest first."""
        backups = []
        for name in os.listdir(self._directory):
            stamp = self._parse_backup(name)
            if stamp is not None:
                backups.append((stamp, os.path.join(self._directory, name)))
        backups.sort(reverse=True)
        return backups

    def prune_backups(self) -> None:
        backups = self.list_backups()
        doomed = []

        if self.backupCount > 0:
            doomed.extend(backups[self.backupCount:])
            backups = backups[: self.backupCount]

        if self.max_age_days > 0:
            cutoff = self._now() - timedelta(days=self.max_age_days)
            doomed.extend(b for b in backups if b[0] < cutoff)

        for _, path in doomed:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass
