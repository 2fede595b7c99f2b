"""
cli/ui/console.py - Rich 콘솔 유틸리티

수집 결과와 상태 메시지를 일관된 형식으로 출력하는 함수들
"""

from __future__ import annotations

import platform
from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from core.inventory import ReconcileResult


def get_console(stderr: bool = False) -> Console:
    """Rich Console 인스턴스를 생성하고 반환합니다."""
    is_windows = platform.system().lower() == "windows"

    return Console(
        stderr=stderr,
        color_system="auto",
        highlight=True,
        soft_wrap=True,
        markup=True,
        emoji=not is_windows,
    )


# 전역 콘솔 인스턴스 (stderr: stdout은 마크다운 리포트 전용)
console = get_console(stderr=True)


# =============================================================================
# 표준 출력 스타일 (이모지 없이 Rich 스타일만 사용)
# =============================================================================

SYMBOL_SUCCESS = "✓"
SYMBOL_ERROR = "✗"
SYMBOL_WARNING = "!"
SYMBOL_INFO = "•"


def print_success(message: str) -> None:
    """성공 메시지 출력 (초록색 체크마크)"""
    console.print(f"[green]{SYMBOL_SUCCESS} {message}[/green]")


def print_error(message: str) -> None:
    """에러 메시지 출력 (빨간색 X)"""
    console.print(f"[red]{SYMBOL_ERROR} {message}[/red]")


def print_warning(message: str) -> None:
    """경고 메시지 출력 (노란색)"""
    console.print(f"[yellow]{SYMBOL_WARNING} {message}[/yellow]")


def print_info(message: str) -> None:
    """정보 메시지 출력"""
    console.print(f"[blue]{SYMBOL_INFO} {message}[/blue]")


def print_summary_table(title: str, summary: dict[str, int]) -> None:
    """리소스 종류별 수집 개수를 테이블로 출력

    Args:
        title: 테이블 제목
        summary: 리소스 종류 → 개수
    """
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("리소스", style="cyan")
    table.add_column("개수", justify="right")

    for key, count in summary.items():
        table.add_row(key, str(count))
    table.add_row("[bold]합계[/bold]", f"[bold]{sum(summary.values())}[/bold]")

    console.print(table)


def print_pass_result(namespace: str, name: str, result: ReconcileResult) -> None:
    """수집 패스 결과 요약 박스 출력"""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", width=12)
    table.add_column()
    table.add_row("인벤토리", f"[bold]{namespace}/{name}[/bold]")

    if result.skipped:
        table.add_row("결과", f"[yellow]건너뜀 ({result.skipped})[/yellow]")
    elif result.success:
        table.add_row("결과", "[green]성공[/green]")
    else:
        table.add_row("결과", "[red]실패[/red]")

    if result.report_name:
        table.add_row("리포트", result.report_name)
    if result.message:
        table.add_row("메시지", result.message)
    if result.requeue_after is not None:
        table.add_row("다음 실행", f"{int(result.requeue_after.total_seconds())}초 후")

    console.print(Panel(table, title="수집 결과", border_style="#FF9900"))
