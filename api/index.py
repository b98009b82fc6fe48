"""
Serverless entry point for the Contact Intake API
"""
import os

# Serverless: no background sweep, policy file is optional
os.environ.setdefault("ENVIRONMENT", "production")
os.environ.setdefault("OVERDUE_SWEEP_INTERVAL", "0")

from mangum import Mangum  # noqa: E402

from intake.main import app  # noqa: E402

# Lambda handler for ASGI app (lifespan runs init on cold start)
handler = Mangum(app, lifespan="auto")
