import os

from nutriplan_app.api import create_app

app = create_app()

if __name__ == "__main__":
    print("Nutriplan backend starting. API available at http://localhost:8000")
    import uvicorn
    # Run using the local app instance. Use reload in development.
    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), log_level="warning")
