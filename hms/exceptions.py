from fastapi import HTTPException, status


class HotelException(HTTPException):
    status_code = 500
    detail = ""

    def __init__(self, detail=None):
        super().__init__(status_code=self.status_code, detail=detail if detail is not None else self.detail)


class HotelNotFoundException(HotelException):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Hotel not found."


class HotelContextException(HotelException):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "No hotel context: pass hotel_id or use a hotel-scoped token."


class HotelCodeTakenException(HotelException):
    status_code = status.HTTP_409_CONFLICT
    detail = "A hotel with this code already exists."


class RoomTypeNotFoundException(HotelException):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Room type not found."


class RoomTypeCodeTakenException(HotelException):
    status_code = status.HTTP_409_CONFLICT
    detail = "A room type with this code already exists in the hotel."


class RoomTypeInUseException(HotelException):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Room type has active reservations and cannot be deleted."


class ReservationNotFoundException(HotelException):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Reservation not found."


class GuestNotFoundException(HotelException):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Guest not found."


class BookingValidationException(HotelException):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid booking request."


class InventoryRangeException(HotelException):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Field 'end' must be after 'start'."


class InventoryWriteException(HotelException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "No inventory day could be written."


class AuthException(HotelException):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Unauthorized"

    def __init__(self, detail=None):
        super().__init__(detail)
        self.headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenException(HotelException):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Forbidden"


class OperationException(HTTPException):
    status_code = 500
    detail = {
        "status": "",
        "msg": ""
    }

    def __init__(self, detail=None):
        super().__init__(status_code=self.status_code, detail=detail if detail is not None else self.detail)


class CapacityExceededException(OperationException):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, rejection):
        self.rejection = rejection
        super().__init__({
            "status": "fail",
            "msg": rejection.message,
            "night": rejection.night.isoformat(),
            "requested": rejection.requested,
            "remaining": rejection.remaining,
            "capacity": rejection.capacity,
        })


class ConcurrentBookingException(OperationException):
    status_code = status.HTTP_409_CONFLICT
    detail = {
        "status": "fail",
        "msg": "Booking conflicted with a concurrent write, please retry."
    }
