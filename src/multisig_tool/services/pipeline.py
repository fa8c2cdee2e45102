from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from threading import RLock
from typing import Optional, Sequence, Union

from ..config import BuilderConfig
from ..domain.models import ContractSession
from .build_supervisor import BuildSession, start_build
from .key_set import RawKey, build_session, ensure_consistent
from .materializer import materialize_project, validate_contract_name
from .renderer import render_contract_source
from .telemetry_sink import TelemetryEvent, record_event

logger = logging.getLogger("multisig.pipeline")


class ContractPipeline:
    """Stateful session: configure keys, preview the source, generate and build.

    Every operation holds the lock only for its synchronous part. Builds run on
    their own threads against the snapshot taken when ``generate`` was called,
    so later configuration changes only affect the next build.
    """

    def __init__(self, config: Optional[BuilderConfig] = None) -> None:
        self._config = config or BuilderConfig.from_env()
        self._lock = RLock()
        self._session = ContractSession()

    @property
    def config(self) -> BuilderConfig:
        return self._config

    def snapshot(self) -> ContractSession:
        with self._lock:
            return self._session

    def set_configuration(
        self,
        keys: Sequence[RawKey],
        primary_key_should_be_deleted: bool,
        key_management_weight: int,
        deployment_weight: int,
        *,
        strict: bool = False,
    ) -> ContractSession:
        """Replace the associated keys and thresholds.

        Can be called any number of times before generating. On error the
        previous configuration stays in effect. With ``strict`` the advisory
        checks (duplicates, key count, threshold consistency) are enforced too.
        """
        with self._lock:
            updated = build_session(
                self._session,
                keys,
                primary_key_should_be_deleted,
                key_management_weight,
                deployment_weight,
            )
            if strict:
                ensure_consistent(updated.keys, updated.thresholds)
            self._session = updated
        record_event(
            TelemetryEvent(
                name="configuration_set",
                properties={
                    "key_count": len(updated.keys),
                    "remove_primary": primary_key_should_be_deleted,
                    "key_management_weight": key_management_weight,
                    "deployment_weight": deployment_weight,
                },
            )
        )
        return updated

    def preview_source(self) -> str:
        with self._lock:
            return render_contract_source(self._session)

    def project_root(self) -> Path:
        with self._lock:
            return self._session.project_root

    def set_project_root(self, root_dir: Union[str, Path]) -> None:
        with self._lock:
            self._session = replace(self._session, project_root=Path(root_dir))

    def contract_name(self) -> str:
        with self._lock:
            return self._session.contract_name

    def set_contract_name(self, name: str) -> None:
        validate_contract_name(name)
        with self._lock:
            self._session = replace(self._session, contract_name=name)

    def default_project_root(self) -> Path:
        """Current root, else the configured root, else the home directory."""
        current = self.project_root()
        if current != Path():
            return current
        if self._config.project_root is not None:
            return self._config.project_root
        try:
            return Path.home()
        except RuntimeError:
            return Path.cwd()

    def default_contract_name(self) -> str:
        return self.contract_name() or self._config.contract_name

    def generate(self) -> BuildSession:
        """Write the contract project and start compiling it.

        An unset project root or contract name is filled in from the defaults
        (see ``default_project_root``) and kept once the files are written.
        Returns as soon as the build process is running; iterate the returned
        session (or its ``output``) for the build log.
        """
        with self._lock:
            session = replace(
                self._session,
                project_root=self.default_project_root(),
                contract_name=self.default_contract_name(),
            )
            layout = materialize_project(session)
            self._session = session
        logger.info("generating contract name=%s keys=%d", session.contract_name, len(session.keys))
        return start_build(layout.project_dir, layout.contract_name, self._config.build_command)


_pipeline: Optional[ContractPipeline] = None
_pipeline_lock = RLock()


def get_pipeline() -> ContractPipeline:
    global _pipeline
    with _pipeline_lock:
        if _pipeline is None:
            _pipeline = ContractPipeline()
        return _pipeline
