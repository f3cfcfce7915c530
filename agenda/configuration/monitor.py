import logging
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from azure.monitor.opentelemetry.exporter import AzureMonitorTraceExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from agenda.configuration.config import Config

# Configure logger
logger = logging.getLogger("agenda")
if not logger.handlers:
    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    logger.addHandler(_handler)
logger.setLevel(Config.LOG_LEVEL)

def setup_tracing():
    """Create the tracer. Spans are shipped to Application Insights only when
    a connection string is configured; otherwise they are recorded locally."""
    try:
        provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: Config.SERVICE_NAME}))
        trace.set_tracer_provider(provider)

        if Config.APPLICATIONINSIGHTS_CONNECTION_STRING:
            exporter = AzureMonitorTraceExporter(
                connection_string=Config.APPLICATIONINSIGHTS_CONNECTION_STRING
            )
            provider.add_span_processor(BatchSpanProcessor(exporter))
            logger.info("Exporting spans to Application Insights")
        else:
            logger.info("Application Insights not configured, spans stay local")

        # Upstream API calls go through httpx
        HTTPXClientInstrumentor().instrument()
    except Exception as e:
        logger.error(f"Failed to set up tracing: {str(e)}")
    return trace.get_tracer("agenda")

tracer = setup_tracing()

def instrument_fastapi(app):
    try:
        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI app instrumented")
    except Exception as e:
        logger.error(f"Failed to instrument FastAPI app: {str(e)}")

def _set_attributes(span, properties):
    for key, value in (properties or {}).items():
        if value is not None:
            span.set_attribute(key, str(value))

def start_span(name, context=None, kind=None, attributes=None):
    """Start a span around an operation; None attribute values are dropped."""
    if attributes:
        attributes = {k: str(v) for k, v in attributes.items() if v is not None}
    return tracer.start_as_current_span(name, context=context, kind=kind, attributes=attributes)

def log_event(event_name, properties=None):
    """Record a business event as a span and a log line."""
    try:
        with tracer.start_as_current_span(event_name) as span:
            _set_attributes(span, properties)
        logger.info(f"{event_name} {properties or {}}")
    except Exception as e:
        logger.error(f"Failed to log event '{event_name}': {str(e)}")

def log_exception(exception, properties=None):
    """Record a failure on the current trace and log it with its traceback."""
    try:
        with tracer.start_as_current_span("exception") as span:
            span.record_exception(exception)
            _set_attributes(span, properties)
            span.set_status(trace.StatusCode.ERROR, str(exception))
        logger.error(f"{type(exception).__name__}: {str(exception)} {properties or {}}", exc_info=exception)
    except Exception as e:
        logger.error(f"Failed to log exception: {str(e)}")

def log_metric(metric_name, value, properties=None):
    try:
        with tracer.start_as_current_span(f"metric:{metric_name}") as span:
            span.set_attribute("metric.value", value)
            _set_attributes(span, properties)
        logger.debug(f"Metric {metric_name}={value} {properties or {}}")
    except Exception as e:
        logger.error(f"Failed to log metric '{metric_name}': {str(e)}")
