from common.workers.launcher import WorkerLauncher
from packages.billing.workers.subscription_sweep_worker import SubscriptionSweepWorker

if __name__ == "__main__":
    WorkerLauncher().run(
        worker_factory=SubscriptionSweepWorker, worker_name="Subscription Sweep Worker"
    )
