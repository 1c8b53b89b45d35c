"""Calendar, task-manager and smart-home integration API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.integration import CalendarIntegration, SmartHomeIntegration, TaskIntegration
from app.models.user import User
from app.schemas.integrations import (
    AutomationRuleCreate,
    AutomationRuleUpdate,
    CalendarEventCreate,
    CalendarIntegrationCreate,
    CalendarIntegrationResponse,
    CalendarIntegrationUpdate,
    ExternalTask,
    IntegrationStatus,
    SmartHomeIntegrationCreate,
    SmartHomeIntegrationResponse,
    SmartHomeIntegrationUpdate,
    TaskIntegrationCreate,
    TaskIntegrationResponse,
    TaskIntegrationUpdate,
    TriggerRequest,
)
from app.services import integrations, smart_home

router = APIRouter(prefix="/api/integrations", tags=["integrations"])


@router.get("/overview")
async def overview(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await integrations.overview(db, user.id)


# Calendar

@router.post("/calendar", response_model=CalendarIntegrationResponse, status_code=201)
async def create_calendar(
    data: CalendarIntegrationCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await integrations.create_calendar(db, user.id, data)


@router.get("/calendar", response_model=list[CalendarIntegrationResponse])
async def list_calendars(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await integrations.list_active(db, CalendarIntegration, user.id)


@router.get("/calendar/{integration_id}", response_model=CalendarIntegrationResponse)
async def get_calendar(integration_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await integrations.get_owned(db, CalendarIntegration, integration_id, user.id)


@router.patch("/calendar/{integration_id}", response_model=CalendarIntegrationResponse)
async def update_calendar(
    integration_id: int,
    data: CalendarIntegrationUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await integrations.update_integration(
        db, CalendarIntegration, integration_id, user.id, data.model_dump(exclude_unset=True)
    )


@router.delete("/calendar/{integration_id}", status_code=204)
async def delete_calendar(integration_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await integrations.delete_integration(db, CalendarIntegration, integration_id, user.id)


@router.post("/calendar/{integration_id}/sync", response_model=CalendarIntegrationResponse)
async def sync_calendar(integration_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await integrations.sync_calendar(db, integration_id, user.id)


@router.get("/calendar/{integration_id}/status", response_model=IntegrationStatus)
async def calendar_status(integration_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    integration = await integrations.get_owned(db, CalendarIntegration, integration_id, user.id)
    return integrations.sync_status(integration)


@router.post("/calendar/{integration_id}/events")
async def create_calendar_event(
    integration_id: int,
    event: CalendarEventCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    created = await integrations.create_calendar_event(db, integration_id, user.id, event)
    return {"created": created is not None, "event": created}


# Tasks

@router.post("/tasks", response_model=TaskIntegrationResponse, status_code=201)
async def create_task_integration(
    data: TaskIntegrationCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await integrations.create_task_integration(db, user.id, data)


@router.get("/tasks", response_model=list[TaskIntegrationResponse])
async def list_task_integrations(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await integrations.list_active(db, TaskIntegration, user.id)


@router.get("/tasks/stats")
async def task_stats(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await integrations.task_stats(db, user.id)


@router.get("/tasks/{integration_id}", response_model=TaskIntegrationResponse)
async def get_task_integration(integration_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await integrations.get_owned(db, TaskIntegration, integration_id, user.id)


@router.patch("/tasks/{integration_id}", response_model=TaskIntegrationResponse)
async def update_task_integration(
    integration_id: int,
    data: TaskIntegrationUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await integrations.update_integration(
        db, TaskIntegration, integration_id, user.id, data.model_dump(exclude_unset=True)
    )


@router.delete("/tasks/{integration_id}", status_code=204)
async def delete_task_integration(integration_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await integrations.delete_integration(db, TaskIntegration, integration_id, user.id)


@router.post("/tasks/{integration_id}/sync", response_model=TaskIntegrationResponse)
async def sync_tasks(integration_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await integrations.sync_tasks(db, integration_id, user.id)


@router.get("/tasks/{integration_id}/status", response_model=IntegrationStatus)
async def task_status(integration_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    integration = await integrations.get_owned(db, TaskIntegration, integration_id, user.id)
    return integrations.sync_status(integration)


@router.post("/tasks/{integration_id}/habits", status_code=201)
async def create_habit_from_task(
    integration_id: int,
    task: ExternalTask,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    habit = await integrations.create_habit_from_task(db, integration_id, user.id, task)
    return {"habit_id": habit.id, "title": habit.title}


# Smart home

@router.post("/smart-home", response_model=SmartHomeIntegrationResponse, status_code=201)
async def create_smart_home(
    data: SmartHomeIntegrationCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await smart_home.create_smart_home(db, user.id, data)


@router.get("/smart-home", response_model=list[SmartHomeIntegrationResponse])
async def list_smart_home(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await integrations.list_active(db, SmartHomeIntegration, user.id)


@router.get("/smart-home/dashboard")
async def smart_home_dashboard(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await smart_home.dashboard(db, user.id)


@router.get("/smart-home/{integration_id}", response_model=SmartHomeIntegrationResponse)
async def get_smart_home(integration_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await integrations.get_owned(db, SmartHomeIntegration, integration_id, user.id)


@router.patch("/smart-home/{integration_id}", response_model=SmartHomeIntegrationResponse)
async def update_smart_home(
    integration_id: int,
    data: SmartHomeIntegrationUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await integrations.update_integration(
        db, SmartHomeIntegration, integration_id, user.id, data.model_dump(exclude_unset=True)
    )


@router.delete("/smart-home/{integration_id}", status_code=204)
async def delete_smart_home(integration_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await integrations.delete_integration(db, SmartHomeIntegration, integration_id, user.id)


@router.post("/smart-home/{integration_id}/sync", response_model=SmartHomeIntegrationResponse)
async def sync_smart_home(integration_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await smart_home.sync_smart_home(db, integration_id, user.id)


@router.get("/smart-home/{integration_id}/status", response_model=IntegrationStatus)
async def smart_home_status(integration_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    integration = await integrations.get_owned(db, SmartHomeIntegration, integration_id, user.id)
    return integrations.sync_status(integration)


@router.post("/smart-home/{integration_id}/rules", status_code=201)
async def add_rule(
    integration_id: int,
    data: AutomationRuleCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await smart_home.add_rule(db, integration_id, user.id, data)


@router.patch("/smart-home/{integration_id}/rules/{rule_id}")
async def update_rule(
    integration_id: int,
    rule_id: str,
    data: AutomationRuleUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await smart_home.update_rule(db, integration_id, user.id, rule_id, data)


@router.delete("/smart-home/{integration_id}/rules/{rule_id}", status_code=204)
async def delete_rule(
    integration_id: int,
    rule_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await smart_home.delete_rule(db, integration_id, user.id, rule_id)


@router.post("/smart-home/{integration_id}/trigger")
async def trigger_automation(
    integration_id: int,
    data: TriggerRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await smart_home.trigger_automation(db, integration_id, user.id, data.trigger_type, data.data)
