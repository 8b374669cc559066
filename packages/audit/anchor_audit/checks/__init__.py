"""Detectors run by the analyzer, in reporting order."""

from anchor_audit.checks.base import StructCheck, HandlerCheck
from anchor_audit.checks.signer_check import SignerCheck
from anchor_audit.checks.duplicate_account_check import DuplicateAccountCheck
from anchor_audit.checks.init_if_needed_check import InitIfNeededCheck
from anchor_audit.checks.cpi_check import CpiCheck
from anchor_audit.checks.mut_borrow_check import MutBorrowCheck
from anchor_audit.checks.remaining_accounts_check import RemainingAccountsCheck
from anchor_audit.checks.realloc_check import ReallocCheck
from anchor_audit.checks.seeds_check import (
    IdenticalSeedsCheck,
    check_cross_struct_seeds,
    find_prefix_collisions,
)

STRUCT_CHECKS = [
    SignerCheck,
    DuplicateAccountCheck,
    InitIfNeededCheck,
    IdenticalSeedsCheck,
]

HANDLER_CHECKS = [
    CpiCheck,
    RemainingAccountsCheck,
    ReallocCheck,
    MutBorrowCheck,
]

__all__ = [
    "StructCheck",
    "HandlerCheck",
    "SignerCheck",
    "DuplicateAccountCheck",
    "InitIfNeededCheck",
    "IdenticalSeedsCheck",
    "CpiCheck",
    "MutBorrowCheck",
    "RemainingAccountsCheck",
    "ReallocCheck",
    "STRUCT_CHECKS",
    "HANDLER_CHECKS",
    "check_cross_struct_seeds",
    "find_prefix_collisions",
]
