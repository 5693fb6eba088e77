"""
Mark ended campaigns and lapsed subscriptions as EXPIRED.
Run: python -m scripts.expire_records   (e.g. from an hourly cron)

Visibility and access checks already compare end dates directly; this only
brings the stored status in line for listings and reports.
"""
import logging
import sys

from app.db.session import SessionLocal
from app.services.campaign_service import expire_ended_campaigns
from app.services.subscription_service import expire_lapsed_subscriptions

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


if __name__ == "__main__":
    db = SessionLocal()
    try:
        campaigns = expire_ended_campaigns(db)
        subscriptions = expire_lapsed_subscriptions(db)
        print(f"\n[SUCCESS] Expired {campaigns} campaign(s) and {subscriptions} subscription(s)")
    except Exception as e:
        db.rollback()
        logger.error(f"Expiry sweep failed: {e}", exc_info=True)
        sys.exit(1)
    finally:
        db.close()
