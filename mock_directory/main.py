import asyncio
import os

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

app = FastAPI()

# seconds to sleep before answering, to make coalescing visible
DELAY = float(os.environ.get("MOCK_DIRECTORY_DELAY", "0.5"))

class User(BaseModel):
    id: str
    name: str
    email: str | None = None

USERS = {
    "u1": User(id="u1", name="Ann", email="ann@example.com"),
    "u2": User(id="u2", name="Bob", email="bob@example.com"),
    "u3": User(id="u3", name="Cleo"),
}

@app.get("/users/{user_id}")
async def read_user(user_id: str):
    await asyncio.sleep(DELAY)
    if user_id == "flaky":
        raise HTTPException(status_code=503, detail="Directory temporarily unavailable")
    user = USERS.get(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user.model_dump()
