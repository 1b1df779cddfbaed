"""
Serverless entry point for the Integration Probe API
"""
import sys
import os

# Add src directory to path
src_dir = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

# Set environment variables for serverless
os.environ.setdefault("ENVIRONMENT", "production")

from mangum import Mangum
from main import app

# Lambda handler for ASGI app; lifespan runs per cold start
handler = Mangum(app, lifespan="auto")
