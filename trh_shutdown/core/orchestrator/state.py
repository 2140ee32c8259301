"""
state.py

Shutdown progress record persisted between CLI invocations, plus the derived
context that is recomputed from settings.json and the SDK location every run.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...shared.utils import format_timestamp, utc_now

COMMAND_GEN = "gen"
COMMAND_DRY_RUN = "dry-run"
COMMAND_SEND = "send"


class DerivedContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    chain_id: int
    l2_chain_id: int
    thanos_root: str
    deployments_path: str


class ShutdownState(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Derived on every context build; kept in the file for schema compatibility
    chain_id: int = Field(default=0, alias="chainId")
    l2_chain_id: int = Field(default=0, alias="l2ChainId")
    thanos_root: str = Field(default="", alias="thanosRoot")
    deployments_path: str = Field(default="", alias="deploymentsPath")

    data_dir: str = Field(default="", alias="dataDir")

    last_gen_at: Optional[str] = Field(default=None, alias="lastGenAt")
    last_dry_run_at: Optional[str] = Field(default=None, alias="lastDryRunAt")
    last_send_at: Optional[str] = Field(default=None, alias="lastSendAt")
    last_snapshot_path: Optional[str] = Field(default=None, alias="lastSnapshotPath")
    last_command: Optional[str] = Field(default=None, alias="lastCommand")

    def apply_derived(self, derived: DerivedContext) -> None:
        self.chain_id = derived.chain_id
        self.l2_chain_id = derived.l2_chain_id
        self.thanos_root = derived.thanos_root
        self.deployments_path = derived.deployments_path

    def mark_generated(self, snapshot_path: str, now: Optional[datetime] = None) -> None:
        self.last_gen_at = format_timestamp(now or utc_now())
        self.last_snapshot_path = snapshot_path
        self.last_command = COMMAND_GEN

    def mark_dry_run(self, now: Optional[datetime] = None) -> None:
        self.last_dry_run_at = format_timestamp(now or utc_now())
        self.last_command = COMMAND_DRY_RUN

    def mark_sent(self, now: Optional[datetime] = None) -> None:
        self.last_send_at = format_timestamp(now or utc_now())
        self.last_command = COMMAND_SEND

    def to_file_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
