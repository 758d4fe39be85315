"""Lambda handler for the Portal API using Mangum."""
from mangum import Mangum
from portal_api.main import create_app

# Gateway is provisioned once per cold start
app = create_app()

handler = Mangum(app, lifespan="off")

lambda_handler = handler
