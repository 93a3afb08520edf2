"""Voting strategies and the engine that reconciles them into decisions."""

from .engine import ReconciliationEngine
from .gate import DecisionGate
from .group_chat import GroupChatVoting, SessionStep, SessionTable, VoteSession
from .locks import KeyedLocks
from .poll import PollVoting, option_labels
from .single_link import SingleLinkApproval
from .tally import chosen_from_counts, parse_vote_text, select_options, tally

__all__ = [
    "DecisionGate",
    "GroupChatVoting",
    "KeyedLocks",
    "PollVoting",
    "ReconciliationEngine",
    "SessionStep",
    "SessionTable",
    "SingleLinkApproval",
    "VoteSession",
    "chosen_from_counts",
    "option_labels",
    "parse_vote_text",
    "select_options",
    "tally",
]
