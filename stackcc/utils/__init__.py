"""Terminal helpers shared by the command line front end"""
from .term import print_stage, print_info, print_error, print_success, print_diagnostic

__all__ = ['print_stage', 'print_info', 'print_error', 'print_success', 'print_diagnostic']
