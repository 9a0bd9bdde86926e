from django.conf import settings
from ninja_jwt.controller import NinjaJWTDefaultController
from ninja_extra import NinjaExtraAPI
from accounts.api import router as accounts_router
from meetings.api import router as meetings_router
from todos.api import router as todos_router
from discussions.api import router as discussions_router

api = NinjaExtraAPI(title="TimeToMeet API")

api.add_router("/accounts/",    accounts_router)
api.add_router("/meetings/",    meetings_router)
api.add_router("/todos/",       todos_router)
api.add_router("/discussions/", discussions_router)

api.register_controllers(NinjaJWTDefaultController)

@api.get("/health", summary="Health Check", description="Simple endpoint to check if the API is running.")
def health(request):
    return {"status": "ok"}


@api.get("/capabilities", summary="Capabilities",
         description="Optional features available on this deployment. Clients hide or disable controls for missing ones.")
def capabilities(request):
    return {
        "todo_ordering": bool(settings.TODO_ORDERING_ENABLED),
        "email": bool(settings.RESEND_API_KEY),
    }
