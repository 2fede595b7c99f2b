# cli/ui - 콘솔 출력 컴포넌트 (rich)
"""
콘솔 출력 모듈

CLI 전용 UI 컴포넌트들 (상태 메시지, 결과 테이블)
"""

from .console import (
    SYMBOL_ERROR,
    SYMBOL_INFO,
    SYMBOL_SUCCESS,
    SYMBOL_WARNING,
    console,
    get_console,
    print_error,
    print_info,
    print_pass_result,
    print_success,
    print_summary_table,
    print_warning,
)

__all__: list[str] = [
    "SYMBOL_ERROR",
    "SYMBOL_INFO",
    "SYMBOL_SUCCESS",
    "SYMBOL_WARNING",
    "console",
    "get_console",
    "print_error",
    "print_info",
    "print_pass_result",
    "print_success",
    "print_summary_table",
    "print_warning",
]
