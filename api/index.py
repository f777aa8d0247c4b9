from mangum import Mangum
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sharing.api import create_app

# Routes already carry the /api prefix (API_PREFIX, default /api/v1).
app = create_app()

handler = Mangum(app)
