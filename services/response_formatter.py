"""Structured Markdown formatting for suggestions, commitments and errors."""

from typing import List, Dict, Any, Optional

from models.entities import BookingResult, Commitment, ServiceDescriptor, SuggestionResult
from models.errors import (
    BookingEngineError,
    CancellationWindowClosed,
    ExternalServiceUnavailable,
    InvalidStatusTransition,
    NotFound,
    PastAppointment,
    ServiceInactive,
    SlotConflict,
)
from services.time_arithmetic import day_name


class ResponseFormatter:
    """Formats engine results for the booking UI in a consistent, structured manner."""

    @staticmethod
    def format_section(title: str, content: List[str], icon: str = "📋") -> str:
        """Format a section with title and content."""
        lines = [f"**{icon} {title}**", ""]
        lines.extend(content)
        return "\n".join(lines)

    @staticmethod
    def format_info_line(label: str, value: str, available: bool = True) -> str:
        """Format an info line with availability indicator."""
        icon = "✅" if available else "❌"
        return f"   {icon} **{label}:** {value}"

    @staticmethod
    def format_suggestions(
        result: SuggestionResult,
        service: ServiceDescriptor
    ) -> tuple[str, List[Dict[str, Any]]]:
        """
        Format suggested times with button information.

        Returns:
            tuple: (formatted_text, button_info_list)
            button_info_list contains dicts with 'label' and 'index' for each candidate
        """
        if result.is_empty:
            return (
                ResponseFormatter.format_error(
                    "No Available Times Found",
                    result.reasoning or "Your availability does not overlap the provider's for this service.",
                    suggestions=[
                        "Add more availability to your weekly schedule",
                        "Try a different service or provider",
                    ]
                ),
                []
            )

        source = "AI-enhanced" if result.source_tag == "ai-enhanced" else "Generated"
        lines = [
            f"**🎯 Suggested Times for {service.name}**",
            "",
            f"Found **{len(result.candidates)}** time slot(s). ({source})",
        ]
        if result.fell_back:
            lines.append("*AI suggestions were unavailable, so the basic scheduler was used.*")
        lines.extend(["", f"_{result.reasoning}_", ""])

        button_info = []
        for i, candidate in enumerate(result.candidates, 1):
            date_str = candidate.date.strftime('%B %d, %Y')
            lines.append(f"**Option {i}** · {candidate.confidence_label} confidence")
            lines.append(f"   • Date: {day_name(candidate.day_of_week)}, {date_str}")
            lines.append(f"   • Time: {candidate.start_time} - {candidate.end_time} ({candidate.duration_minutes} min)")
            lines.append(f"   • Why: {candidate.reasoning}")
            lines.append("")

            button_info.append({
                "label": f"{candidate.date.strftime('%b %d')} {candidate.start_time}",
                "index": i - 1,
            })

        return "\n".join(lines), button_info

    @staticmethod
    def format_commitment(commitment: Commitment, service_name: Optional[str] = None) -> str:
        """One-line summary of a commitment."""
        name = service_name or commitment.service_id
        date_str = commitment.date.strftime('%a %b %d, %Y')
        return (
            f"**{name}** · {date_str} {commitment.start_time}-{commitment.end_time} "
            f"· {commitment.status} · ${commitment.total_amount:.2f}"
        )

    @staticmethod
    def format_commitments(
        commitments: List[Commitment],
        service_names: Optional[Dict[str, str]] = None
    ) -> str:
        """Format a list of upcoming commitments."""
        if not commitments:
            return ResponseFormatter.format_info("No Upcoming Appointments", "Nothing booked yet.")

        names = service_names or {}
        content = [
            f"{i}. {ResponseFormatter.format_commitment(c, names.get(c.service_id))}"
            for i, c in enumerate(commitments, 1)
        ]
        return ResponseFormatter.format_section("Upcoming Appointments", content, icon="📅")

    @staticmethod
    def format_booking_results(results: List[BookingResult]) -> str:
        """Summarize an auto-booking run."""
        booked = [r for r in results if r.status == "booked"]
        failed = [r for r in results if r.status == "failed"]

        lines = [
            "**📦 Auto-Booking Summary**",
            "",
            f"Booked **{len(booked)}** of **{len(results)}** suggested time(s).",
            "",
        ]
        for result in booked:
            lines.append(ResponseFormatter.format_info_line(result.date.isoformat(), result.start_time, True))
        for result in failed:
            lines.append(ResponseFormatter.format_info_line(
                result.date.isoformat(), f"{result.start_time} - {result.error}", False
            ))
        return "\n".join(lines)

    @staticmethod
    def format_booking_error(error: BookingEngineError) -> str:
        """Map a domain error to a user-facing message."""
        if isinstance(error, SlotConflict):
            return ResponseFormatter.format_error(
                "Time No Longer Available",
                f"{error.date} at {error.start_time} was just taken.",
                suggestions=["Generate new suggestions and pick another time"]
            )
        if isinstance(error, PastAppointment):
            return ResponseFormatter.format_error("Time Has Passed", str(error))
        if isinstance(error, CancellationWindowClosed):
            return ResponseFormatter.format_error(
                "Too Late to Cancel",
                str(error),
                suggestions=["Contact the provider directly"]
            )
        if isinstance(error, InvalidStatusTransition):
            return ResponseFormatter.format_error("Status Cannot Change", str(error))
        if isinstance(error, ServiceInactive):
            return ResponseFormatter.format_error("Service Unavailable", str(error))
        if isinstance(error, NotFound):
            return ResponseFormatter.format_error(f"{error.kind} Not Found", str(error))
        if isinstance(error, ExternalServiceUnavailable):
            return ResponseFormatter.format_error(
                "Service Temporarily Unavailable",
                str(error),
                suggestions=["Try again in a moment"]
            )
        return ResponseFormatter.format_error("Booking Failed", str(error))

    @staticmethod
    def format_success(title: str, message: str, details: Optional[List[str]] = None) -> str:
        """Format a success message."""
        lines = [
            f"**✅ {title}**",
            "",
            message
        ]

        if details:
            lines.append("")
            lines.append("**Details:**")
            for detail in details:
                lines.append(f"• {detail}")

        return "\n".join(lines)

    @staticmethod
    def format_error(title: str, message: str, suggestions: Optional[List[str]] = None) -> str:
        """Format an error message."""
        lines = [
            f"**❌ {title}**",
            "",
            message
        ]

        if suggestions:
            lines.append("")
            lines.append("**Suggestions:**")
            for suggestion in suggestions:
                lines.append(f"• {suggestion}")

        return "\n".join(lines)

    @staticmethod
    def format_info(title: str, message: str, items: Optional[List[str]] = None) -> str:
        """Format an informational message."""
        lines = [
            f"**ℹ️ {title}**",
            "",
            message
        ]

        if items:
            lines.append("")
            for item in items:
                lines.append(f"• {item}")

        return "\n".join(lines)
