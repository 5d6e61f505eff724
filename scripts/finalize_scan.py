"""
Finalize a crawled scan from CLI.

Internal trigger used by the crawl pipeline once every analysis chunk is done.
"""

from __future__ import annotations

import argparse
import json
import uuid

from db.repositories.errors import ScanNotFoundError
from db.session import SessionLocal
from readiness.orchestrator import ScanFinalizeOrchestrator, ScanStateConflictError


def main() -> int:
    parser = argparse.ArgumentParser(description="Score a crawled scan and mark it COMPLETED.")
    parser.add_argument("--tenant-id", dest="tenant_id", type=uuid.UUID, required=True)
    parser.add_argument("--customer-id", dest="customer_id", type=uuid.UUID, required=True)
    parser.add_argument("--scan-id", dest="scan_id", type=uuid.UUID, required=True)
    args = parser.parse_args()

    with SessionLocal() as db:
        try:
            result = ScanFinalizeOrchestrator(db).finalize(
                tenant_id=args.tenant_id,
                customer_id=args.customer_id,
                scan_id=args.scan_id,
            )
        except (ScanNotFoundError, ScanStateConflictError) as exc:
            print(json.dumps({"error": str(exc)}, indent=2))
            return 1

    payload = {
        "scan_id": str(result.scan.id),
        "status": result.scan.status,
        "tracking_readiness_score": result.score.readiness_score,
        "readiness_narrative": result.score.narrative,
        "recommendation_counts": result.score.counts.as_dict(),
        "total_recommendations": result.score.total,
        "pages_scored": result.pages_scored,
    }
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
