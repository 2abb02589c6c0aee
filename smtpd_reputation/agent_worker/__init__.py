"""
Background maintenance: the periodic history sweep.
"""

from smtpd_reputation.agent_worker.runner import SweepRunner, run_sweep_loop

__all__ = ["SweepRunner", "run_sweep_loop"]
