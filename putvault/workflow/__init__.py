"""putvault.workflow: Temporal keeper for sweeps and stale-order cancellation."""

from putvault.workflow.types import KeeperInput as KeeperInput
from putvault.workflow.types import KeeperProgress as KeeperProgress
from putvault.workflow.types import KeeperResult as KeeperResult
from putvault.workflow.types import StaleOrderInput as StaleOrderInput
from putvault.workflow.types import StaleOrderOutput as StaleOrderOutput
from putvault.workflow.types import SweepInput as SweepInput
from putvault.workflow.types import SweepOutput as SweepOutput
