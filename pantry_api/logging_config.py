import logging
import os
import opentelemetry.trace
from azure.monitor.opentelemetry import configure_azure_monitor

# Configure Azure Monitor (this automatically sets up connection to Application Insights)
# Only configure if running in Azure (determined by FUNCTIONS_WORKER_RUNTIME environment variable)
if os.environ.get("FUNCTIONS_WORKER_RUNTIME"):
    try:
        configure_azure_monitor()
        logging.info("Azure Monitor OpenTelemetry configured successfully")
    except Exception as e:
        logging.error(f"Error configuring Azure Monitor: {str(e)}")

# Tracer shared by the store, ledger and catalogue modules
tracer = opentelemetry.trace.get_tracer("pantry_api")

logger = logging.getLogger("pantry_api")
logger.setLevel(os.environ.get("PANTRY_LOG_LEVEL", "INFO").upper())

if not logger.handlers:
    # Console handler for local development and Azure Functions console
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(
        logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    )
    logger.addHandler(console_handler)


def get_child_logger(name):
    """Get a child logger with the given name."""
    return logger.getChild(name)


def mark_span_error(span, error: Exception, status_code=None):
    """Record the failure attributes every traced operation sets on error."""
    span.set_attribute("error", True)
    span.set_attribute("error.type", type(error).__name__)
    if status_code is not None:
        span.set_attribute("error.status_code", status_code)
