from fastapi import FastAPI, Request

from pushcore.core.lifespan import lifespan

app = FastAPI(title="pushcore", lifespan=lifespan)


@app.get("/health/push")
async def push_health(request: Request) -> dict[str, bool]:
  """Report whether push is configured and the dispatcher is accepting receipts."""
  dispatcher = getattr(request.app.state, "push_dispatcher", None)
  return {"enabled": dispatcher is not None, "ready": bool(dispatcher is not None and dispatcher.is_ready)}
