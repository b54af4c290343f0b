"""Detail content shown in a marker's popup.

Each marker variant has exactly one template builder. :func:`resolve_popup`
dispatches on the variant class, so a variant without a builder fails the
exhaustiveness check in the test-suite rather than rendering nothing.
"""
from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type

from opsmap.entities import (
    ClientMarker,
    CompetitorMarker,
    EventMarker,
    MapMarker,
    QuotationMarker,
    WorkerStatusMarker,
)
from opsmap.formatting import (
    NOT_AVAILABLE,
    UNKNOWN_STATUS,
    format_currency,
    format_date,
    format_datetime,
    render_address,
)

__all__ = [
    "POPUP_TEMPLATES",
    "PopupContent",
    "PopupSection",
    "render_popup_html",
    "resolve_popup",
]

_UNNAMED = "Unnamed Entity"
_NO_TIME = "--:--"


@dataclass(frozen=True)
class PopupSection:
    heading: str
    lines: Tuple[str, ...]


@dataclass(frozen=True)
class PopupContent:
    """Structured popup content, independent of how it is rendered."""

    template: str
    title: str
    status: str
    sections: Tuple[PopupSection, ...] = ()

    def section(self, heading: str) -> Optional[PopupSection]:
        for section in self.sections:
            if section.heading == heading:
                return section
        return None


def _present(value: Any) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, (str, list, tuple, dict)) and not value:
        return False
    return True


def _first_text(*candidates: Any) -> str:
    """Return the first present candidate as text; record fields may be numeric."""

    for candidate in candidates:
        if _present(candidate):
            return str(candidate)
    return ""


def _line(label: Optional[str], value: Any, suffix: str = "") -> Optional[str]:
    if not _present(value):
        return None
    text = f"{value}{suffix}"
    return f"{label}: {text}" if label else text


def _section(heading: str, *lines: Optional[str]) -> Optional[PopupSection]:
    kept = tuple(str(line) for line in lines if _present(line))
    if not kept:
        return None
    return PopupSection(heading=heading, lines=kept)


def _sections(*sections: Optional[PopupSection]) -> Tuple[PopupSection, ...]:
    return tuple(section for section in sections if section is not None)


def _nested(source: Any, name: str) -> Mapping[str, Any]:
    if isinstance(source, MapMarker):
        value = source.get(name)
    elif isinstance(source, Mapping):
        value = source.get(name)
    else:
        value = None
    return value if isinstance(value, Mapping) else {}


def _upper(value: Any, default: str) -> str:
    return str(value).upper() if _present(value) else default


def _limited(items: Any, limit: int) -> List[str]:
    if not isinstance(items, Sequence) or isinstance(items, str):
        return []
    values = [str(item) for item in items if _present(item)]
    shown = values[:limit]
    if len(values) > limit:
        shown.append(f"+{len(values) - limit} more")
    return shown


def _phone(marker: MapMarker) -> Optional[str]:
    phone = marker.get("phone") or _nested(marker, "owner").get("phone")
    return str(phone) if _present(phone) else None


def _location_address(marker: MapMarker) -> str:
    return render_address(_nested(marker, "location").get("address"))


def _contact_section(marker: MapMarker) -> Optional[PopupSection]:
    return _section("Contact", _phone(marker))


def _split_next_task(next_task: str) -> Tuple[str, Optional[str]]:
    """Split ``"04:56 PM: Site visit - Mar 18, 2025"`` into title and deadline."""

    if ":" not in next_task:
        return next_task, None
    separator = next_task.find(": ")
    title = next_task[separator + 2 :] if separator != -1 else next_task
    deadline = next_task[: next_task.index(":") + 6]
    return title, deadline


# -- worker status ---------------------------------------------------------


def _worker_title(marker: MapMarker) -> str:
    kind = marker.marker_type
    name = marker.name or _UNNAMED
    if kind == "task":
        return _first_text(_nested(marker, "taskData").get("title"), name)
    if kind == "lead":
        lead = _nested(marker, "leadData")
        return _first_text(lead.get("companyName"), lead.get("contactName"), name)
    if kind == "journal":
        return f"Journal Entry #{_nested(marker, 'journalData').get('uid') or marker.id}"
    if kind == "check-in-visit":
        return f"Check-in Visit - {_nested(marker, 'client').get('name') or 'Client'}"
    if kind in ("shift-start", "shift-end"):
        label = "Shift Start" if kind == "shift-start" else "Shift End"
        return f"{label} - {name}"
    if kind in ("break-start", "break-end"):
        label = "Break Start" if kind == "break-start" else "Break End"
        return f"{label} - {name}"
    return name


def _client_location(marker: MapMarker, heading: str) -> Optional[PopupSection]:
    client = _nested(marker, "client")
    if not client:
        return None
    return _section(heading, _line(None, client.get("name")), _location_address(marker))


def _task_sections(marker: MapMarker) -> Tuple[PopupSection, ...]:
    task = _nested(marker, "taskData")
    if not task:
        return ()
    return _sections(
        _section(
            "Task Details",
            _first_text(task.get("title"), "Task"),
            f"Status: {task.get('status') or 'PENDING'}",
            _line(None, task.get("description")),
            _line("Priority", task.get("priority")),
            _line("Deadline", format_date(task["deadline"]) if task.get("deadline") else None),
        ),
        _client_location(marker, "Client Location"),
    )


def _lead_sections(marker: MapMarker) -> Tuple[PopupSection, ...]:
    lead = _nested(marker, "leadData")
    if not lead:
        return ()
    return _sections(
        _section(
            "Lead Details",
            _first_text(lead.get("companyName"), lead.get("contactName"), "Lead"),
            f"Status: {lead.get('status') or 'NEW'}",
            _line(None, lead.get("email")),
            _line(None, lead.get("phone")),
            _line("Industry", lead.get("industry")),
            _line("Lead Score", lead.get("leadScore"), "/100"),
        ),
        _section("Lead Location", _location_address(marker)),
    )


def _journal_sections(marker: MapMarker) -> Tuple[PopupSection, ...]:
    journal = _nested(marker, "journalData")
    if not journal:
        return ()
    client_name = marker.get("clientName")
    return _sections(
        _section(
            "Journal Entry",
            f"Entry #{journal.get('uid') or marker.id}",
            f"Status: {journal.get('status') or 'PENDING_REVIEW'}",
            _line(None, journal.get("comments")),
            _line("Created", format_date(journal["timestamp"]) if journal.get("timestamp") else None),
        ),
        _section("Client Reference", client_name, _location_address(marker)) if client_name else None,
    )


def _visit_sections(marker: MapMarker) -> Tuple[PopupSection, ...]:
    visit = _nested(marker, "checkInData")
    if not visit:
        return ()
    check_in = visit.get("checkInTime")
    check_out = visit.get("checkOutTime")
    return _sections(
        _section(
            "Check-in Visit",
            f"Visit #{visit.get('uid') or marker.id}",
            f"Status: {'Completed' if check_out else 'In Progress'}",
            _line("Check-in", format_datetime(check_in) if check_in else None),
            _line("Check-out", format_datetime(check_out) if check_out else None),
            _line("Duration", visit.get("duration")),
        ),
        _client_location(marker, "Visit Location"),
    )


def _shift_sections(marker: MapMarker) -> Tuple[PopupSection, ...]:
    attendance = _nested(marker, "attendanceData")
    if not attendance:
        return ()
    is_start = marker.marker_type == "shift-start"
    started = attendance.get("checkInTime")
    ended = attendance.get("checkOutTime")
    return _sections(
        _section(
            "Shift Started" if is_start else "Shift Ended",
            marker.name,
            _line("Started" if is_start else "Check-in", format_datetime(started) if started else None),
            _line("Ended", format_datetime(ended) if ended and not is_start else None),
            _line("Total Duration", attendance.get("duration") if not is_start else None),
        ),
        _contact_section(marker),
        _section("Location", _location_address(marker)),
    )


def _break_sections(marker: MapMarker) -> Tuple[PopupSection, ...]:
    attendance = _nested(marker, "attendanceData")
    if not attendance:
        return ()
    is_start = marker.marker_type == "break-start"
    started = attendance.get("breakStartTime")
    ended = attendance.get("breakEndTime")
    return _sections(
        _section(
            "Break Started" if is_start else "Break Ended",
            marker.name,
            _line("Started", format_datetime(started) if started else None),
            _line("Ended", format_datetime(ended) if ended and not is_start else None),
            _line("Break Count", attendance.get("breakCount")),
            _line("Total Break Time", attendance.get("totalBreakTime")),
        ),
        _contact_section(marker),
        _section("Break Location", _location_address(marker)),
    )


def _job_status_section(marker: MapMarker) -> Optional[PopupSection]:
    job = _nested(marker, "jobStatus")
    if not job:
        return None
    if job.get("startTime") == _NO_TIME and job.get("endTime") == _NO_TIME:
        return None
    return _section(
        "Job Status",
        _line(None, job.get("status")),
        _line("Completion", job.get("completionPercentage"), "%"),
        _line("Start", job.get("startTime")),
        _line("End", job.get("endTime")),
        _line("Duration", job.get("duration")),
    )


def _schedule_section(marker: MapMarker) -> Optional[PopupSection]:
    schedule = _nested(marker, "schedule")
    if not schedule:
        return None
    lines: List[Optional[str]] = [_line("Current", schedule.get("current"))]
    next_task = schedule.get("next")
    if _present(next_task):
        title, deadline = _split_next_task(str(next_task))
        lines.append(f"Next Task: {title}")
        lines.append(_line("Deadline", deadline))
    return _section("Schedule", *lines)


def _worker_sections(marker: MapMarker) -> Tuple[PopupSection, ...]:
    address = _nested(marker, "location").get("address")
    task = _nested(marker, "task")
    on_break = _nested(marker, "breakData")
    return _sections(
        _contact_section(marker),
        _section("Current Location", render_address(address) if address else "No location data")
        if "location" in marker.record
        else None,
        _section(
            "Current Task",
            _line(None, task.get("title")),
            _line("Client", task.get("client")),
            _line("ID", task.get("id")),
        ),
        _job_status_section(marker),
        _section(
            "On Break",
            _line("From", on_break.get("startTime")),
            _line("To", on_break.get("endTime")),
            _line("Total", on_break.get("duration")),
            _line("Remaining", on_break.get("remainingTime")),
            _line("Location", on_break.get("location")),
        ),
        _schedule_section(marker),
    )


_WORKER_SUB_KINDS: Dict[str, Callable[[MapMarker], Tuple[PopupSection, ...]]] = {
    "task": _task_sections,
    "lead": _lead_sections,
    "journal": _journal_sections,
    "check-in-visit": _visit_sections,
    "shift-start": _shift_sections,
    "shift-end": _shift_sections,
    "break-start": _break_sections,
    "break-end": _break_sections,
}


def _worker_status_popup(marker: MapMarker) -> PopupContent:
    builder = _WORKER_SUB_KINDS.get(marker.marker_type, _worker_sections)
    return PopupContent(
        template="worker-status",
        title=_worker_title(marker),
        status=marker.status or UNKNOWN_STATUS,
        sections=builder(marker),
    )


# -- client, competitor, quotation -----------------------------------------


def _client_popup(marker: MapMarker) -> PopupContent:
    tags = _limited(marker.get("tags"), 4)
    return PopupContent(
        template="client",
        title=marker.name or _UNNAMED,
        status=marker.status or UNKNOWN_STATUS,
        sections=_sections(
            _section("Location", render_address(marker.get("address"))),
            _section(
                "Client Information",
                _line("Reference", marker.get("clientRef")),
                f"Status: {_upper(marker.status, 'Unknown')}",
                _line("Industry", marker.get("industry")),
                _line(None, marker.get("description")),
            ),
            _section(
                "Contact Information",
                _line(None, marker.get("contactName")),
                _phone(marker),
                _line("Alt", marker.get("alternativePhone")),
                _line(None, marker.get("email")),
                _line(None, marker.get("website")),
            ),
            _section(
                "Financial Information",
                _line("Credit Limit", format_currency(marker.get("creditLimit")) if marker.get("creditLimit") else None),
                _line("Outstanding", format_currency(marker.get("outstandingBalance")) if marker.get("outstandingBalance") else None),
                _line("Lifetime Value", format_currency(marker.get("lifetimeValue")) if marker.get("lifetimeValue") else None),
                _line("Price Tier", marker.get("priceTier") and str(marker.get("priceTier")).upper()),
                _line("Risk Level", marker.get("riskLevel") and str(marker.get("riskLevel")).upper()),
            ),
            _section(
                "Company Details",
                _line("Employees", marker.get("companySize")),
                _line("Annual Revenue", format_currency(marker.get("annualRevenue")) if marker.get("annualRevenue") else None),
                _line("Satisfaction", marker.get("satisfactionScore"), "/10"),
                _line("NPS Score", marker.get("npsScore")),
            ),
            _section("Tags", ", ".join(tags)) if tags else None,
        ),
    )


def _competitor_analysis(marker: MapMarker) -> Optional[PopupSection]:
    if "isDirect" not in marker.record:
        return None
    revenue = marker.get("estimatedAnnualRevenue")
    return _section(
        "Competitive Analysis",
        f"Direct Competitor: {'Yes' if marker.get('isDirect') else 'No'}",
        _line("Threat Level", marker.get("threatLevel"), "/10"),
        _line("Competitive Advantage", marker.get("competitiveAdvantage"), "/10"),
        _line("Est. Employees", marker.get("estimatedEmployeeCount")),
        _line("Est. Revenue", format_currency(revenue) if revenue else None),
        _line("Market Share", marker.get("marketSharePercentage"), "%"),
    )


def _pricing_section(marker: MapMarker) -> Optional[PopupSection]:
    pricing = _nested(marker, "pricingData")
    lines = [
        _line(label, format_currency(pricing[name]) if pricing.get(name) else None)
        for label, name in (
            ("Low", "lowEndPricing"),
            ("Mid", "midRangePricing"),
            ("High", "highEndPricing"),
        )
    ]
    lines.append(_line("Model", pricing.get("pricingModel")))
    return _section("Pricing Intelligence", *lines)


def _competitor_popup(marker: MapMarker) -> PopupContent:
    geofencing = _nested(marker, "geofencing")
    return PopupContent(
        template="competitor",
        title=marker.name or _UNNAMED,
        status=marker.status or UNKNOWN_STATUS,
        sections=_sections(
            _section("Location", render_address(marker.get("address"))),
            _section(
                "Competitor Information",
                _line("Reference", marker.get("competitorRef")),
                f"Status: {_upper(marker.status, 'Unknown')}",
                _line("Industry", marker.get("industry")),
                _line(None, marker.get("description")),
            ),
            _section(
                "Contact Information",
                _line(None, marker.get("contactEmail")),
                _line(None, marker.get("contactPhone")),
                _line(None, marker.get("website")),
            ),
            _competitor_analysis(marker),
            _section("Key Products", *_limited(marker.get("keyProducts"), 3)),
            _section("Key Strengths", *_limited(marker.get("keyStrengths"), 2)),
            _section("Key Weaknesses", *_limited(marker.get("keyWeaknesses"), 2)),
            _pricing_section(marker),
            _section(
                "Geofencing",
                "Geofencing Active",
                f"Type: {geofencing.get('type') or NOT_AVAILABLE}, "
                f"Radius: {geofencing.get('radius', NOT_AVAILABLE)}m",
            )
            if geofencing.get("enabled")
            else None,
        ),
    )


def _quotation_popup(marker: MapMarker) -> PopupContent:
    total = marker.get("totalAmount")
    quotation_date = marker.get("quotationDate")
    valid_until = marker.get("validUntil")
    return PopupContent(
        template="quotation",
        title=_first_text(marker.get("clientName"), marker.get("quotationNumber"), marker.name, _UNNAMED),
        status=marker.status or UNKNOWN_STATUS,
        sections=_sections(
            _section(
                "Quotation Details",
                _line("Reference", marker.get("quotationNumber")),
                f"Status: {_upper(marker.status, 'PENDING')}",
                _line("Total", format_currency(total) if total else None),
            ),
            _section(
                "Dates",
                f"Quotation Date: {format_date(quotation_date) if quotation_date else NOT_AVAILABLE}",
                _line("Valid Until", format_date(valid_until) if valid_until else None),
                _line("Placed By", marker.get("placedBy")),
            ),
        ),
    )


def _generic_popup(marker: MapMarker) -> PopupContent:
    location = _nested(marker, "location")
    is_event = marker.get("type") == "event"
    if is_event:
        status = marker.marker_type.replace("-", " ")
    else:
        status = marker.status or UNKNOWN_STATUS
    address = location.get("address") or marker.get("address")
    return PopupContent(
        template="generic",
        title=marker.name or _UNNAMED,
        status=status,
        sections=_sections(
            _section(
                "Event Details" if is_event else "Details",
                None if is_event else _line("Type", marker.marker_type),
                render_address(address),
            )
        ),
    )


POPUP_TEMPLATES: Dict[Type[MapMarker], Callable[[MapMarker], PopupContent]] = {
    WorkerStatusMarker: _worker_status_popup,
    ClientMarker: _client_popup,
    CompetitorMarker: _competitor_popup,
    QuotationMarker: _quotation_popup,
    EventMarker: _generic_popup,
}


def resolve_popup(marker: MapMarker) -> PopupContent:
    """Return the popup content for ``marker``'s variant."""

    builder = POPUP_TEMPLATES.get(type(marker), _generic_popup)
    return builder(marker)


def render_popup_html(content: PopupContent) -> str:
    """Render ``content`` as the HTML body of a folium popup."""

    parts = [
        '<div class="opsmap-popup" style="font-family:sans-serif;font-size:12px;min-width:220px;">',
        f'<h4 style="margin:0 0 4px 0;">{html.escape(content.title)}</h4>',
        f'<p style="margin:0 0 8px 0;color:#6b7280;">{html.escape(content.status)}</p>',
    ]
    for section in content.sections:
        lines = "<br/>".join(html.escape(line) for line in section.lines)
        parts.append(
            '<div style="margin-bottom:6px;">'
            f"<strong>{html.escape(section.heading)}</strong><br/>{lines}</div>"
        )
    parts.append("</div>")
    return "".join(parts)
