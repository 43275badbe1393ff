"""FastAPI application and entrypoint."""

import uvicorn
from fastapi import FastAPI

from matrix_actions.adapters.web.action_routes import matrix_client, matrix_router
from matrix_actions.config import CONFIG

app = FastAPI(title="Matrix Actions")
app.include_router(matrix_router)


@app.get("/health")
async def health():
    return {"ok": True, "configured": matrix_client.is_configured}


def main():
    print("Matrix actions server starting")
    print(f"Config: {CONFIG['config_path']}")
    if not matrix_client.is_configured:
        print("Matrix account not configured (set MATRIX_HOMESERVER / MATRIX_ACCESS_TOKEN in .env)")
    uvicorn.run(app, host="0.0.0.0", port=CONFIG["port"], log_level="info")


if __name__ == "__main__":
    main()
