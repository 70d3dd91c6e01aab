import importlib.util
import os
import re

from scripts.utils import log
from scripts.utils.migration import Migration
from scripts.utils.deploy_args import DeployArgs


class MigrationError(Exception):
    """
    Error representing an exception that occurs while executing a migration.
    Provides a `failure_timestamp` to identify the migration in which the
    failure occurred, which can be used to resume execution later on.
    """

    def __init__(
        self, failure_timestamp, message="An error occurred while executing migration"
    ):
        self.failure_timestamp = failure_timestamp
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        return f"{self.message}. Timestamp of failed migration script: {self.failure_timestamp}"


class MigrationRunner:
    """
    Facilitates the execution of migration scripts.
    """

    def __init__(self, migrations_dir, history_dir, files):
        self.migrations_dir = migrations_dir
        self.history_dir = history_dir
        self.files = files
        self.gas = 0

    def run(self, deploy_args: DeployArgs, start_timestamp=None, end_timestamp=None, continue_running=True):
        """
        Run migrations starting at `start_timestamp`. If no start timestamp is provided,
        the history directory is checked for existing timestamps, and migrations will
        start after the latest recorded manifest timestamp.

        Each migration reads the contracts deployed by earlier ones from
        `current-manifest.json` in the history directory, which is the merge of
        every manifest written so far.

        Returns the total gas spent.
        """
        if not os.path.isdir(self.migrations_dir):
            raise FileNotFoundError(f"Migrations directory `{self.migrations_dir}` does not exist")

        for migrate, timestamp, prev_timestamp in self._migrations(start_timestamp, end_timestamp):
            log.h1(f"Running migration with timestamp {timestamp}...")
            try:
                migration = Migration(
                    deploy_args, self.files, timestamp, prev_timestamp, self.history_dir
                )
                migrate(migration)
                self.gas += migration.end()
            except Exception as exception:
                raise MigrationError(timestamp) from exception

            if not continue_running:
                break
        return self.gas

    def _migrations(self, start_timestamp=None, end_timestamp=None):
        # Generator that returns a `(migrate, timestamp, prev_timestamp)` tuple for
        # each migration script, starting ON OR AFTER `start_timestamp`.
        #
        # If no start timestamp is provided, an unfinished migration (one that left
        # its log behind) is resumed; otherwise migrations start AFTER the latest
        # recorded manifest timestamp.

        pending_timestamp = None if start_timestamp is not None else self._pending_log_timestamp()
        if pending_timestamp is not None:
            log.info(f"Resuming unfinished migration {pending_timestamp}")
            migrations = self._filtered_migration_filenames(
                pending_timestamp, end_timestamp)
        elif start_timestamp is None:
            start_timestamp = self._latest_manifest_timestamp()
            migrations = self._filtered_migration_filenames(
                start_timestamp, end_timestamp, inclusive=False
            )
        else:
            migrations = self._filtered_migration_filenames(
                start_timestamp, end_timestamp)

        for filename, timestamp, prev_timestamp in migrations:
            spec = importlib.util.spec_from_file_location(f"migration_{timestamp}", filename)
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
            yield module.migrate, timestamp, prev_timestamp

    def _filtered_migration_filenames(self, start_timestamp, end_timestamp, inclusive=True):
        # Returns `(filename, timestamp, prev_timestamp)` tuples for the scripts whose
        # timestamp is >= `start_timestamp` (> when not `inclusive`) and <= `end_timestamp`.
        # An end timestamp of 0 means no upper bound.

        timestamped_migrations = []
        for file in os.listdir(self.migrations_dir):
            # timestamp is the leading run of digits in the filename
            match = re.fullmatch(r"(\d+).*\.py$", file)
            if match:
                timestamp = match.group(1)
                filename = os.path.join(self.migrations_dir, file)
                timestamped_migrations.append((filename, timestamp))

        # sort order of `os.listdir` is not guaranteed
        timestamped_migrations = sorted(
            timestamped_migrations, key=lambda x: int(x[1]))

        start_timestamp_int = None if start_timestamp is None else int(start_timestamp)
        end_timestamp_int = int(end_timestamp) if end_timestamp else 0

        migrations = []
        prev_timestamp = None
        for filename, timestamp in timestamped_migrations:
            timestamp_int = int(timestamp)

            if end_timestamp_int and timestamp_int > end_timestamp_int:
                break
            if (
                start_timestamp_int is None
                or timestamp_int > start_timestamp_int
                or (inclusive and timestamp_int == start_timestamp_int)
            ):
                migrations.append((filename, timestamp, prev_timestamp))
            prev_timestamp = timestamp

        return migrations

    def _latest_manifest_timestamp(self):
        # timestamp of the most recently executed migration
        # (None if no migrations have been run)

        latest_timestamp = None

        os.makedirs(self.history_dir, exist_ok=True)

        for file in os.listdir(self.history_dir):
            match = re.fullmatch(r"(\d+)\-manifest\.json$", file)
            if match:
                timestamp = match.group(1)
                if latest_timestamp is None or int(timestamp) > int(latest_timestamp):
                    latest_timestamp = timestamp

        return latest_timestamp

    def _pending_log_timestamp(self):
        # earliest migration whose log was never removed by `Migration.end`
        if not os.path.isdir(self.history_dir):
            return None

        pending = [
            match.group(1)
            for match in (re.fullmatch(r"(\d+)\-log\.json$", file) for file in os.listdir(self.history_dir))
            if match
        ]
        return min(pending, key=int) if pending else None
