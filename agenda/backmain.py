from fastapi import FastAPI
from agenda.routers import rou_availability, rou_booking, rou_slots
from agenda.configuration.monitor import instrument_fastapi

app = FastAPI(
    title="Agenda Availability API",
    description="Availability rules and bookable slots for the medical office frontend",
    version="1.0.0"
)

# Include all routers
app.include_router(rou_availability.router)
app.include_router(rou_slots.router)
app.include_router(rou_booking.router)  # Public, no authentication

# Instrument app with Azure Monitor
instrument_fastapi(app)

if __name__ == '__main__':
    import uvicorn
    uvicorn.run(app, host='0.0.0.0', port=8000)
