from fastapi import FastAPI
from sessionbook.routers import rou_booking, rou_availability, rou_analytics, rou_calendar, rou_payment
from sessionbook.configuration.monitor import instrument_fastapi

app = FastAPI(
    title="SessionBook API",
    description="Scheduling engine for personal-training sessions",
    version="1.0.0"
)

# Include all routers
app.include_router(rou_booking.router)
app.include_router(rou_availability.router)
app.include_router(rou_analytics.router)
app.include_router(rou_calendar.router)
app.include_router(rou_payment.router)

# Instrument app with Azure Monitor
instrument_fastapi(app)

if __name__ == '__main__':
    import uvicorn
    uvicorn.run(app, host='0.0.0.0', port=8000)
