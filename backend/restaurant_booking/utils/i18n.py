"""Display strings for reason codes, per locale."""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping, Optional

from ..domain.errors import ReasonCode
from ..models import MAX_PARTY_SIZE

DEFAULT_LOCALE = "en"

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        ReasonCode.RESERVATION_CREATED: "Reservation created successfully",
        ReasonCode.RESERVATION_UPDATED: "Reservation updated successfully",
        ReasonCode.RESERVATION_CANCELLED: "Reservation cancelled successfully",
        ReasonCode.VALIDATION_ERROR: "Please correct the highlighted fields",
        ReasonCode.REQUIRED_FIELD: "This field is required",
        ReasonCode.RESERVATION_DATE_INVALID: "Invalid reservation date",
        ReasonCode.RESERVATION_TIME_INVALID: "Invalid reservation time format",
        ReasonCode.PARTY_SIZE_INVALID: "Party size must be at least 1",
        ReasonCode.PARTY_SIZE_TOO_LARGE: "Party size cannot exceed {max_party_size}",
        ReasonCode.NOTES_INVALID: "Notes must be plain text",
        ReasonCode.TABLE_ID_INVALID: "Invalid table",
        ReasonCode.RESERVATION_ID_INVALID: "Invalid reservation",
        ReasonCode.INVALID_INPUT: "Invalid input",
        ReasonCode.MISSING_RESERVATION_ID: "Reservation is missing",
        ReasonCode.USER_NOT_AUTHENTICATED: "You need to sign in to manage reservations",
        ReasonCode.UNAUTHORIZED: "Unauthorized",
        ReasonCode.NOT_FOUND: "Reservation not found",
        ReasonCode.RESERVATION_TIME_NOT_IN_FUTURE: "Reservation time must be in the future",
        ReasonCode.PARTY_SIZE_EXCEEDS_TABLE_CAPACITY: "Party size exceeds table capacity",
        ReasonCode.TABLE_ALREADY_BOOKED_AT_TIME: "Table already booked at this time",
        ReasonCode.CANNOT_UPDATE_RESERVATION: "Cannot update this reservation",
        ReasonCode.CANNOT_EDIT_STATUS: "This reservation can no longer be edited",
        ReasonCode.ALREADY_CANCELLED: "Already cancelled",
        ReasonCode.CANNOT_CANCEL_STATUS: "This reservation can no longer be cancelled",
        ReasonCode.CANNOT_CANCEL_PAST: "Cannot cancel past reservations",
        ReasonCode.DATABASE_ERROR: "Database error",
        ReasonCode.UNKNOWN_ERROR: "Unknown error",
        ReasonCode.GENERIC_ERROR: "Something went wrong",
    },
    "es": {
        ReasonCode.RESERVATION_CREATED: "Reserva creada correctamente",
        ReasonCode.RESERVATION_UPDATED: "Reserva actualizada correctamente",
        ReasonCode.RESERVATION_CANCELLED: "Reserva cancelada correctamente",
        ReasonCode.VALIDATION_ERROR: "Corrige los campos marcados",
        ReasonCode.REQUIRED_FIELD: "Este campo es obligatorio",
        ReasonCode.RESERVATION_DATE_INVALID: "Fecha de reserva no válida",
        ReasonCode.RESERVATION_TIME_INVALID: "Formato de hora no válido",
        ReasonCode.PARTY_SIZE_INVALID: "El número de personas debe ser al menos 1",
        ReasonCode.PARTY_SIZE_TOO_LARGE: "El número de personas no puede superar {max_party_size}",
        ReasonCode.NOTES_INVALID: "Las notas deben ser texto",
        ReasonCode.TABLE_ID_INVALID: "Mesa no válida",
        ReasonCode.RESERVATION_ID_INVALID: "Reserva no válida",
        ReasonCode.INVALID_INPUT: "Datos no válidos",
        ReasonCode.MISSING_RESERVATION_ID: "Falta la reserva",
        ReasonCode.USER_NOT_AUTHENTICATED: "Inicia sesión para gestionar tus reservas",
        ReasonCode.UNAUTHORIZED: "No autorizado",
        ReasonCode.NOT_FOUND: "Reserva no encontrada",
        ReasonCode.RESERVATION_TIME_NOT_IN_FUTURE: "La hora de la reserva debe ser futura",
        ReasonCode.PARTY_SIZE_EXCEEDS_TABLE_CAPACITY: "El número de personas supera la capacidad de la mesa",
        ReasonCode.TABLE_ALREADY_BOOKED_AT_TIME: "La mesa ya está reservada a esa hora",
        ReasonCode.CANNOT_UPDATE_RESERVATION: "No se puede actualizar esta reserva",
        ReasonCode.CANNOT_EDIT_STATUS: "Esta reserva ya no se puede editar",
        ReasonCode.ALREADY_CANCELLED: "Ya está cancelada",
        ReasonCode.CANNOT_CANCEL_STATUS: "Esta reserva ya no se puede cancelar",
        ReasonCode.CANNOT_CANCEL_PAST: "No se pueden cancelar reservas pasadas",
        ReasonCode.DATABASE_ERROR: "Error de base de datos",
        ReasonCode.UNKNOWN_ERROR: "Error desconocido",
        ReasonCode.GENERIC_ERROR: "Algo salió mal",
    },
}

_DEFAULT_VALUES = {"max_party_size": MAX_PARTY_SIZE}


class _Values(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def translate(code: ReasonCode | str, locale: str, **values: Any) -> str:
    """Display string for ``code`` in ``locale``; falls back to English, then to the code itself."""
    catalog = MESSAGES.get(locale) or MESSAGES[DEFAULT_LOCALE]
    template = catalog.get(code) or MESSAGES[DEFAULT_LOCALE].get(code) or str(code)
    return template.format_map(_Values({**_DEFAULT_VALUES, **values}))


def negotiate_locale(
    accept_language: Optional[str],
    supported: Iterable[str],
    default: str = DEFAULT_LOCALE,
) -> str:
    """Pick the first supported language from an Accept-Language header."""
    supported = list(supported)
    if not accept_language:
        return default
    ranked: list[tuple[float, int, str]] = []
    for index, part in enumerate(accept_language.split(",")):
        tag, _, params = part.strip().partition(";")
        quality = 1.0
        if params.strip().startswith("q="):
            try:
                quality = float(params.strip()[2:])
            except ValueError:
                quality = 0.0
        language = tag.strip().lower().split("-")[0]
        if language:
            ranked.append((-quality, index, language))
    for quality, _, language in sorted(ranked):
        if quality < 0 and language in supported:
            return language
    return default


def localized_value(i18n_field: Any, locale: str) -> Optional[str]:
    """
    Pick the ``locale`` entry of a per-locale map, falling back to English.

    Accepts a mapping, a JSON-encoded mapping, or a plain string (returned as is).
    """
    if i18n_field is None:
        return None
    if isinstance(i18n_field, str):
        try:
            parsed = json.loads(i18n_field)
        except ValueError:
            return i18n_field
        if not isinstance(parsed, Mapping):
            return i18n_field
        i18n_field = parsed
    if isinstance(i18n_field, Mapping):
        return i18n_field.get(locale) or i18n_field.get(DEFAULT_LOCALE) or None
    return str(i18n_field)
