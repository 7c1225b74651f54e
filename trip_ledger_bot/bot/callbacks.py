from __future__ import annotations

from aiogram.filters.callback_data import CallbackData


class CloseCb(CallbackData, prefix="close"):
    initiator: int


class DigitCb(CallbackData, prefix="digit"):
    initiator: int
    digit: int


class NumActionCb(CallbackData, prefix="numact"):
    initiator: int
    action: str  # ok | back | clear | dot | cancel


class PageCb(CallbackData, prefix="page"):
    initiator: int
    flow: str  # payer | participants
    page: int


class PickPayerCb(CallbackData, prefix="payer"):
    initiator: int
    member_id: int


class ToggleParticipantCb(CallbackData, prefix="tpart"):
    initiator: int
    member_id: int


class SplitParticipantsActionCb(CallbackData, prefix="spact"):
    initiator: int
    action: str  # done | all | clear


class ConfirmCb(CallbackData, prefix="confirm"):
    initiator: int
