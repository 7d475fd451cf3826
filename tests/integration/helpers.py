from typing import Optional

from httpx import AsyncClient


def leave_payload(approver_id: Optional[int] = None, hours: int = 8, submit: bool = True, **extra) -> dict:
    end_day, end_hour = divmod(9 + hours, 24)
    payload = {
        "leave_type": 1,
        "start_time": "2026-03-02T09:00:00",
        "end_time": f"2026-03-{2 + end_day:02d}T{end_hour:02d}:00:00",
        "reason": "家中有事需要处理",
        "approver_id": approver_id,
        "submit": submit,
    }
    payload.update(extra)
    return payload


def reimburse_payload(approver_id: Optional[int] = None, amount: str = "320.50", submit: bool = True) -> dict:
    return {
        "expense_type": 1,
        "amount": amount,
        "reason": "客户现场出差交通费",
        "occur_date": "2026-03-01",
        "approver_id": approver_id,
        "submit": submit,
    }


async def open_task_id(client: AsyncClient, headers: dict, app_id: int) -> int:
    response = await client.get("/api/v1/tasks/todo", headers=headers)
    tasks = [t for t in response.json()["data"] if t["app_id"] == app_id]
    assert len(tasks) == 1
    return tasks[0]["id"]
