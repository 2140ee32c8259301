"""
status.py

Read-only view of a deployment's shutdown progress: resolved configuration,
persisted markers and the on-disk phase artifacts.
"""
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel

from .artifacts import ASSETS_SNAPSHOT, STORAGE_ADDRESSES
from .context import ShutdownContext

NEVER = "(never)"
NONE = "(none)"


class ArtifactStatus(BaseModel):
    label: str
    path: str
    exists: bool
    modified_at: Optional[str] = None


class StatusReport(BaseModel):
    deployment_root: str
    sdk_root: str
    l1_chain_id: int
    l2_chain_id: int
    network: str
    thanos_root: str
    deployments_path: str
    data_dir: str
    state_file: str
    last_command: Optional[str] = None
    last_gen_at: Optional[str] = None
    last_snapshot_path: Optional[str] = None
    last_dry_run_at: Optional[str] = None
    last_send_at: Optional[str] = None
    artifacts: List[ArtifactStatus] = []

    def render(self) -> List[str]:
        lines = [
            "",
            "🔧 Current Configuration:",
            f"   Deployment Path: {self.deployment_root}",
            f"   SDK Path: {self.sdk_root}",
            f"   L1 Chain ID: {self.l1_chain_id}",
            f"   L2 Chain ID: {self.l2_chain_id}",
            f"   Network: {self.network}",
            f"   Thanos Root: {self.thanos_root}",
            f"   Deployments Path: {self.deployments_path}",
            f"   Data Directory: {self.data_dir}",
            f"   State File: {self.state_file}",
            "",
            "📜 Execution History:",
            f"   Last Command: {self.last_command or NONE}",
            f"   Last Gen: {self.last_gen_at or NEVER}",
        ]
        if self.last_gen_at and self.last_snapshot_path:
            lines.append(f"   Last Snapshot: {self.last_snapshot_path}")
        lines.extend([
            f"   Last Dry-Run: {self.last_dry_run_at or NEVER}",
            f"   Last Send: {self.last_send_at or NEVER}",
            "",
            "📁 Artifacts:",
        ])
        for artifact in self.artifacts:
            if artifact.exists:
                lines.append(f"   ✅ {artifact.label}: {artifact.path}")
                lines.append(f"      Last modified: {artifact.modified_at}")
            else:
                lines.append(f"   ❌ {artifact.label}: not found ({artifact.path})")
        return lines


def _artifact_status(label: str, path: Path) -> ArtifactStatus:
    if not path.is_file():
        return ArtifactStatus(label=label, path=str(path), exists=False)
    modified = datetime.fromtimestamp(path.stat().st_mtime).strftime("%Y-%m-%d %H:%M:%S")
    return ArtifactStatus(label=label, path=str(path), exists=True, modified_at=modified)


def build_status_report(ctx: ShutdownContext) -> StatusReport:
    state = ctx.state
    # gen --output moves the snapshot; the persisted path wins over the default
    snapshot_path = Path(state.last_snapshot_path) if state.last_snapshot_path else ASSETS_SNAPSHOT.default_path(ctx)
    return StatusReport(
        deployment_root=str(ctx.deployment_root),
        sdk_root=str(ctx.sdk_root),
        l1_chain_id=ctx.derived.chain_id,
        l2_chain_id=ctx.derived.l2_chain_id,
        network=ctx.config.network,
        thanos_root=ctx.derived.thanos_root,
        deployments_path=ctx.derived.deployments_path,
        data_dir=str(ctx.data_dir),
        state_file=str(ctx.state_store.path),
        last_command=state.last_command,
        last_gen_at=state.last_gen_at,
        last_snapshot_path=state.last_snapshot_path,
        last_dry_run_at=state.last_dry_run_at,
        last_send_at=state.last_send_at,
        artifacts=[
            _artifact_status("Assets snapshot", snapshot_path),
            _artifact_status("Storage addresses", STORAGE_ADDRESSES.default_path(ctx)),
        ],
    )
