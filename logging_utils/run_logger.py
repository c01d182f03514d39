"""
Run Logger - Batch Outcomes & AI Spend
======================================
Collects the per-listing logs of one batch and counts how each listing
ended: published, waiting for the seller, or failed.
"""

from typing import Any, Dict

from logging_utils.listing_logger import ListingProcessingLog


class RunLogger:
    """Outcome counters and AI spend for a batch of listings."""

    def __init__(self, run_id: str, total_listings: int = 0):
        self.run_id = run_id
        self.listing_logs: Dict[str, ListingProcessingLog] = {}
        self.run_stats = {
            "total_listings": total_listings,
            "completed": 0,
            "awaiting_confirmation": 0,
            "failed": 0,
            "soft_failures": 0,
            "total_ai_calls": 0,
            "total_cost_usd": 0.0,
        }

    def add_listing_log(self, log: ListingProcessingLog):
        self.listing_logs[log.run_id] = log

    def increment_stat(self, stat_name: str, amount: int = 1):
        if stat_name in self.run_stats:
            self.run_stats[stat_name] += amount

    def record_result(self, result, log: ListingProcessingLog):
        """Files one finished listing under exactly one outcome counter."""
        self.add_listing_log(log)
        if not result.success:
            self.increment_stat("failed")
        elif result.needs_user_input:
            self.increment_stat("awaiting_confirmation")
        else:
            self.increment_stat("completed")
        self.increment_stat("soft_failures", sum(1 for s in result.steps if s.degraded))

    def finalize_run(self) -> Dict[str, Any]:
        """Sums AI calls and spend over every listing log."""
        summaries = [log.summary() for log in self.listing_logs.values()]
        self.run_stats["total_ai_calls"] = sum(s["ai_calls"] for s in summaries)
        self.run_stats["total_cost_usd"] = sum(s["costs"]["total"] for s in summaries)
        return self.run_stats

    def print_batch_report(self):
        stats = self.run_stats
        print("\n" + "=" * 60)
        print(f"BATCH {self.run_id}: {stats['total_listings']} listings")
        print("=" * 60)
        print(f"✅ Published:            {stats['completed']}")
        print(f"⏸️  Awaiting seller:      {stats['awaiting_confirmation']}")
        print(f"❌ Failed:               {stats['failed']}")
        print(f"⚠️  Degraded stages:      {stats['soft_failures']}")

        print(f"\n🤖 {stats['total_ai_calls']} AI calls, ${stats['total_cost_usd']:.4f}")
        for run_id, log in sorted(self.listing_logs.items()):
            print(f"  {run_id}: ${log.costs['total']:.4f}  {log.last_line() or '-'}")
