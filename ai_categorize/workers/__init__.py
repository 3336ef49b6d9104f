"""Workers package: provides the decision engine and the background queue worker."""

from .decision import DecisionEngine  # noqa: F401
from .job_runner import WorkerLoop  # noqa: F401
