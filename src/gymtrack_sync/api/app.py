from typing import Any

from fastapi import Body, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gymtrack_sync.api.dependencies import (
    ClientFactory,
    HandlerDep,
    create_lifespan,
    default_client_factory,
)
from gymtrack_sync.config import settings
from gymtrack_sync.dto import HealthCheckResponse

Payload = dict[str, Any]


def create_app(client_factory: ClientFactory = default_client_factory) -> FastAPI:
    """Build the HTTP application over a facade.

    Every route delegates to one facade operation; the caller's
    connectivity flag travels as the ``online`` query parameter.

    Args:
        client_factory: Coroutine function returning an initialized facade.
            Defaults to Redis local store + HTTP remote gateway.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="GymTrack Sync API",
        description="Offline-first synchronization and caching for fitness tracker data",
        version="0.1.0",
        lifespan=create_lifespan(client_factory),
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": "GymTrack Sync API",
            "version": "0.1.0",
            "endpoints": {
                "profiles": "/profiles",
                "users": "/users/{user_id}",
                "friend_requests": "/friend-requests",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(handler: HandlerDep) -> HealthCheckResponse:
        return await handler.health()

    # Profiles

    @app.put("/profiles")
    async def save_profile(handler: HandlerDep, profile: Payload = Body(...), online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.save_profile(profile, online))

    @app.get("/profiles")
    async def get_profiles(
        handler: HandlerDep,
        uid: list[str] | None = Query(None),
        online: bool = True,
    ) -> JSONResponse:
        return await handler.respond(handler.client.get_profiles(uid or [], online))

    @app.get("/profiles/{uid}")
    async def get_profile(handler: HandlerDep, uid: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.get_profile(uid, online))

    @app.delete("/profiles/{uid}")
    async def delete_profile(handler: HandlerDep, uid: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.delete_profile(uid, online))

    @app.patch("/profiles/{uid}/settings")
    async def update_settings(
        handler: HandlerDep,
        uid: str,
        changes: Payload = Body(...),
        online: bool = True,
    ) -> JSONResponse:
        return await handler.respond(handler.client.update_settings(uid, changes, online))

    @app.post("/profiles/{uid}/sync")
    async def sync_profile(handler: HandlerDep, uid: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.sync_profile(uid, online))

    # Workouts

    @app.get("/users/{user_id}/workouts")
    async def get_all_workouts(handler: HandlerDep, user_id: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.get_all_workouts(user_id, online))

    @app.get("/users/{user_id}/workouts/recent")
    async def get_recent_workouts(
        handler: HandlerDep,
        user_id: str,
        count: int = 10,
        online: bool = True,
    ) -> JSONResponse:
        return await handler.respond(handler.client.get_recent_workouts(user_id, online, count))

    @app.post("/users/{user_id}/workouts/sync")
    async def sync_workouts(handler: HandlerDep, user_id: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.sync_workouts(user_id, online))

    @app.get("/users/{user_id}/workouts/{workout_id}")
    async def get_workout(handler: HandlerDep, user_id: str, workout_id: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.get_workout(user_id, workout_id, online))

    @app.post("/users/{user_id}/workouts")
    async def save_workout(
        handler: HandlerDep,
        user_id: str,
        workout: Payload = Body(...),
        online: bool = True,
    ) -> JSONResponse:
        return await handler.respond(handler.client.save_workout({**workout, "userId": user_id}, online))

    @app.patch("/users/{user_id}/workouts/{workout_id}")
    async def update_workout(
        handler: HandlerDep,
        user_id: str,
        workout_id: str,
        changes: Payload = Body(...),
        online: bool = True,
    ) -> JSONResponse:
        return await handler.respond(handler.client.update_workout(user_id, workout_id, changes, online))

    @app.delete("/users/{user_id}/workouts/{workout_id}")
    async def delete_workout(handler: HandlerDep, user_id: str, workout_id: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.delete_workout(user_id, workout_id, online))

    # Workout plans

    @app.get("/users/{user_id}/plans")
    async def get_workout_plans(handler: HandlerDep, user_id: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.get_workout_plans(user_id, online))

    @app.post("/users/{user_id}/plans/sync")
    async def sync_workout_plans(handler: HandlerDep, user_id: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.sync_workout_plans(user_id, online))

    @app.get("/users/{user_id}/plans/{plan_id}")
    async def get_workout_plan(handler: HandlerDep, user_id: str, plan_id: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.get_workout_plan(user_id, plan_id, online))

    @app.post("/users/{user_id}/plans")
    async def save_workout_plan(
        handler: HandlerDep,
        user_id: str,
        plan: Payload = Body(...),
        online: bool = True,
    ) -> JSONResponse:
        return await handler.respond(handler.client.save_workout_plan({**plan, "userId": user_id}, online))

    @app.patch("/users/{user_id}/plans/{plan_id}")
    async def update_workout_plan(
        handler: HandlerDep,
        user_id: str,
        plan_id: str,
        changes: Payload = Body(...),
        online: bool = True,
    ) -> JSONResponse:
        return await handler.respond(handler.client.update_workout_plan(user_id, plan_id, changes, online))

    @app.delete("/users/{user_id}/plans/{plan_id}")
    async def delete_workout_plan(handler: HandlerDep, user_id: str, plan_id: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.delete_workout_plan(user_id, plan_id, online))

    # Weight log

    @app.get("/users/{user_id}/weight-log")
    async def get_weight_log(handler: HandlerDep, user_id: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.get_weight_log(user_id, online))

    @app.post("/users/{user_id}/weight-log/sync")
    async def sync_weight_log(handler: HandlerDep, user_id: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.sync_weight_log(user_id, online))

    @app.post("/users/{user_id}/weight-log")
    async def log_weight(
        handler: HandlerDep,
        user_id: str,
        entry: Payload = Body(...),
        online: bool = True,
    ) -> JSONResponse:
        return await handler.respond(handler.client.log_weight({**entry, "userId": user_id}, online))

    @app.patch("/users/{user_id}/weight-log/{entry_id}")
    async def update_weight_entry(
        handler: HandlerDep,
        user_id: str,
        entry_id: str,
        changes: Payload = Body(...),
        online: bool = True,
    ) -> JSONResponse:
        return await handler.respond(handler.client.update_weight_entry(user_id, entry_id, changes, online))

    @app.delete("/users/{user_id}/weight-log/{entry_id}")
    async def delete_weight_entry(handler: HandlerDep, user_id: str, entry_id: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.delete_weight_entry(user_id, entry_id, online))

    # Friends

    @app.get("/users/{user_id}/friends")
    async def get_friends(handler: HandlerDep, user_id: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.get_friends(user_id, online))

    @app.delete("/users/{user_id}/friends/{friendship_id}")
    async def remove_friend(handler: HandlerDep, user_id: str, friendship_id: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.remove_friend(friendship_id, user_id, online))

    @app.get("/users/{user_id}/friend-requests/received")
    async def get_received_requests(handler: HandlerDep, user_id: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.get_received_requests(user_id, online))

    @app.get("/users/{user_id}/friend-requests/sent")
    async def get_sent_requests(handler: HandlerDep, user_id: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.get_sent_requests(user_id, online))

    @app.post("/friend-requests")
    async def send_friend_request(handler: HandlerDep, friend_request: Payload = Body(...), online: bool = True) -> JSONResponse:
        return await handler.respond(
            handler.client.send_friend_request(
                friend_request.get("fromUid"),
                friend_request.get("toUid"),
                friend_request.get("fromUsername"),
                online,
                photo_url=friend_request.get("fromPhotoUrl"),
                to_username=friend_request.get("toUsername"),
            )
        )

    @app.post("/friend-requests/{request_id}/accept")
    async def accept_friend_request(
        handler: HandlerDep,
        request_id: str,
        user_id: str,
        online: bool = True,
    ) -> JSONResponse:
        return await handler.respond(handler.client.accept_friend_request(request_id, user_id, online))

    @app.post("/friend-requests/{request_id}/reject")
    async def reject_friend_request(
        handler: HandlerDep,
        request_id: str,
        user_id: str,
        online: bool = True,
    ) -> JSONResponse:
        return await handler.respond(handler.client.reject_friend_request(request_id, user_id, online))

    # Synchronization

    @app.post("/users/{user_id}/sync")
    async def sync_all(handler: HandlerDep, user_id: str, online: bool = True) -> JSONResponse:
        return await handler.respond(handler.client.sync_all(user_id, online))

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "gymtrack_sync.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
