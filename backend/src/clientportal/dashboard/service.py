"""Dashboard aggregation.

The summarize_* functions are pure: they take rows already fetched through
the tenant gateway and a reference time, which keeps the arithmetic
testable without a database. DashboardService does the fetching.
"""

import math
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from ..config import get_settings
from ..models import (
    InvoiceStatus,
    MilestoneStatus,
    ProjectStatus,
    TicketPriority,
    TicketStatus,
)
from ..models.base import utcnow
from ..tenancy.gateway import TenantGateway

ACTIVE_PROJECT = {ProjectStatus.ACTIVE.value, ProjectStatus.IN_PROGRESS.value}
WORKING_TICKET = {TicketStatus.OPEN.value, TicketStatus.IN_PROGRESS.value}
HIGH_PRIORITY = {TicketPriority.HIGH.value, TicketPriority.CRITICAL.value}
PENDING_INVOICE = {InvoiceStatus.DRAFT.value, InvoiceStatus.ISSUED.value}
OVERDUE_CANDIDATE = {InvoiceStatus.ISSUED.value, InvoiceStatus.OVERDUE.value}


def _amount(value: Optional[Decimal]) -> float:
    return float(value) if value is not None else 0.0


def summarize_projects(projects: Iterable[Any]) -> Dict[str, int]:
    statuses = [p.status for p in projects]
    return {
        "total": len(statuses),
        "active": sum(1 for s in statuses if s in ACTIVE_PROJECT),
        "completed": sum(1 for s in statuses if s == ProjectStatus.COMPLETED.value),
        "on_hold": sum(1 for s in statuses if s == ProjectStatus.ON_HOLD.value),
    }


def summarize_tickets(tickets: Iterable[Any]) -> Dict[str, int]:
    tickets = list(tickets)
    working = [t for t in tickets if t.status in WORKING_TICKET]
    return {
        "total": len(tickets),
        "open": sum(1 for t in tickets if t.status == TicketStatus.OPEN.value),
        "in_progress": sum(1 for t in tickets if t.status == TicketStatus.IN_PROGRESS.value),
        "high_priority": sum(1 for t in working if t.priority in HIGH_PRIORITY),
        "critical": sum(1 for t in working if t.priority == TicketPriority.CRITICAL.value),
    }


def summarize_invoices(invoices: Iterable[Any], now: datetime) -> Dict[str, Any]:
    invoices = list(invoices)
    pending = [i for i in invoices if i.status in PENDING_INVOICE]
    overdue = [
        i for i in invoices
        if i.status in OVERDUE_CANDIDATE and i.due_at is not None and i.due_at < now
    ]
    return {
        "total": len(invoices),
        "pending": len(pending),
        "overdue": len(overdue),
        "total_amount": round(sum(_amount(i.amount) for i in invoices), 2),
        "pending_amount": round(sum(_amount(i.amount) for i in pending), 2),
    }


def summarize_milestones(milestones: Iterable[Any], now: datetime) -> Dict[str, int]:
    milestones = list(milestones)
    week_from_now = now + timedelta(days=7)
    open_with_due = [
        m for m in milestones
        if m.status != MilestoneStatus.COMPLETED.value and m.due_at is not None
    ]
    return {
        "total": len(milestones),
        "completed": sum(1 for m in milestones if m.status == MilestoneStatus.COMPLETED.value),
        "overdue": sum(1 for m in open_with_due if m.due_at < now),
        "due_this_week": sum(1 for m in open_with_due if now <= m.due_at <= week_from_now),
    }


def project_progress(milestones: Iterable[Any]) -> Dict[str, int]:
    statuses = [m.status for m in milestones]
    completed = sum(1 for s in statuses if s == MilestoneStatus.COMPLETED.value)
    total = len(statuses)
    return {
        "total_milestones": total,
        "completed_milestones": completed,
        "progress": round(completed / total * 100) if total else 0,
    }


def merge_activity(groups: Iterable[List[Dict[str, Any]]], limit: int) -> List[Dict[str, Any]]:
    """Merge per-source activity lists, newest first, truncated to ``limit``."""
    items = [item for group in groups for item in group]
    items.sort(key=lambda item: item["timestamp"], reverse=True)
    return items[:limit]


class DashboardService:
    """Dashboard figures for the gateway's organization."""

    def __init__(self, gateway: TenantGateway):
        self.gateway = gateway
        self.settings = get_settings()

    def stats(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or utcnow()
        return {
            "projects": summarize_projects(self.gateway.project.find_many()),
            "tickets": summarize_tickets(self.gateway.ticket.find_many()),
            "invoices": summarize_invoices(self.gateway.invoice.find_many(), now),
            "milestones": summarize_milestones(self.gateway.milestone.find_many(), now),
        }

    def recent_activity(self, limit: int) -> List[Dict[str, Any]]:
        limit = max(1, min(limit, self.settings.DASHBOARD_RECENT_ACTIVITY_MAX))
        per_source = math.ceil(limit / 4)
        newest = {"created_at": "desc"}

        projects = [
            {
                "id": p.id,
                "type": "project",
                "title": p.name,
                "status": p.status,
                "timestamp": p.updated_at,
            }
            for p in self.gateway.project.find_many(order_by={"updated_at": "desc"}, take=per_source)
        ]
        tickets = [
            {
                "id": t.id,
                "type": "ticket",
                "title": t.title,
                "status": t.status,
                "priority": t.priority,
                "timestamp": t.created_at,
            }
            for t in self.gateway.ticket.find_many(order_by=newest, take=per_source)
        ]
        milestones = [
            {
                "id": m.id,
                "type": "milestone",
                "title": m.title,
                "status": m.status,
                "due_at": m.due_at,
                "timestamp": m.created_at,
            }
            for m in self.gateway.milestone.find_many(order_by=newest, take=per_source)
        ]
        invoices = [
            {
                "id": i.id,
                "type": "invoice",
                "title": f"Invoice {i.number or i.id[-8:]}",
                "status": i.status,
                "due_at": i.due_at,
                "timestamp": i.created_at,
            }
            for i in self.gateway.invoice.find_many(order_by=newest, take=per_source)
        ]

        return merge_activity([projects, tickets, milestones, invoices], limit)

    def projects_overview(self, limit: int) -> List[Dict[str, Any]]:
        limit = max(1, min(limit, self.settings.DASHBOARD_OVERVIEW_MAX))
        projects = self.gateway.project.find_many(
            order_by=[{"updated_at": "desc"}, {"id": "asc"}],
            take=limit,
            include=("milestones",),
        )

        overview = []
        for project in projects:
            working = {"project_id": project.id, "status": {"in": sorted(WORKING_TICKET)}}
            overview.append({
                "id": project.id,
                "name": project.name,
                "status": project.status,
                **project_progress(project.milestones),
                "open_tickets": self.gateway.ticket.count(working),
                "high_priority_tickets": self.gateway.ticket.count(
                    {**working, "priority": {"in": sorted(HIGH_PRIORITY)}}
                ),
                "start_at": project.start_at,
                "due_at": project.due_at,
                "created_at": project.created_at,
                "updated_at": project.updated_at,
            })
        return overview
