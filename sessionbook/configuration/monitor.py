import logging
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from azure.monitor.opentelemetry.exporter import AzureMonitorTraceExporter
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from sessionbook.configuration.config import Config

# Configure logger
logger = logging.getLogger("sessionbook")
handler = logging.StreamHandler()
handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logger.addHandler(handler)
logger.setLevel(Config.LOG_LEVEL)

resource = Resource(attributes={
    SERVICE_NAME: Config.SERVICE_NAME,
    SERVICE_VERSION: Config.SERVICE_VERSION,
    "deployment.environment": Config.DEPLOYMENT_ENVIRONMENT,
})

def configure_tracing():
    """
    Install the tracer provider for the scheduling service.

    Spans are always recorded so that request traces carry booking and
    ledger attributes; they are shipped to Application Insights only when a
    connection string is configured.
    """
    trace_provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(trace_provider)
    if not Config.APPLICATIONINSIGHTS_CONNECTION_STRING:
        logger.info("Application Insights not configured, spans are not exported")
        return trace.get_tracer("sessionbook")
    try:
        azure_exporter = AzureMonitorTraceExporter(
            connection_string=Config.APPLICATIONINSIGHTS_CONNECTION_STRING
        )
        trace_provider.add_span_processor(BatchSpanProcessor(azure_exporter))
        logger.info("Span export to Application Insights enabled")
    except Exception as e:
        logger.error(f"Failed to set up Application Insights export: {str(e)}")
    return trace.get_tracer("sessionbook")

tracer = configure_tracing()

def span_attributes(properties):
    """Span attributes from a log context: None values dropped, the rest as strings"""
    if not properties:
        return {}
    return {key: str(value) for key, value in properties.items() if value is not None}

def instrument_fastapi(app):
    """Trace every inbound request of the API."""
    try:
        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI app instrumented successfully")
    except Exception as e:
        logger.error(f"Failed to instrument FastAPI app: {str(e)}")

def start_span(name, context=None, kind=None, attributes=None):
    return tracer.start_as_current_span(name, context=context, kind=kind, attributes=attributes)

def log_event(event_name, properties=None):
    """Booking lifecycle event, e.g. "Booking confirmed", as a span and an INFO line."""
    try:
        with tracer.start_as_current_span(event_name, attributes=span_attributes(properties)):
            pass
        logger.info(f"Event: {event_name}", extra={"custom_properties": properties})
    except Exception as e:
        logger.error(f"Failed to log event '{event_name}': {str(e)}")

def log_exception(exception, properties=None):
    """Mark the failure on an error span and log it with its traceback."""
    try:
        with tracer.start_as_current_span("exception", attributes=span_attributes(properties)) as span:
            span.record_exception(exception)
            span.set_status(trace.StatusCode.ERROR, str(exception))
        logger.exception(f"Exception: {str(exception)}", exc_info=exception,
                         extra={"custom_properties": properties})
    except Exception as e:
        logger.error(f"Failed to log exception: {str(e)}")

def log_metric(metric_name, value, properties=None):
    """
    Record a numeric measurement (sessions completed, refund amounts, batch
    sizes) as a `metric:<name>` span and a log line.
    """
    try:
        attributes = span_attributes(properties)
        attributes["metric.name"] = metric_name
        attributes["metric.value"] = value
        with tracer.start_as_current_span(f"metric:{metric_name}", attributes=attributes):
            pass
        logger.info(f"Metric: {metric_name}={value}",
                    extra={"custom_properties": properties})
    except Exception as e:
        logger.error(f"Failed to log metric '{metric_name}': {str(e)}")
