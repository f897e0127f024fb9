from mangum import Mangum
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

os.environ.setdefault("SETTLEMENT_ROOT_PATH", "/api")

from settlement.api import app

handler = Mangum(app)
