# foodorder/domain/errors.py
"""
Bledy domenowe koszyka i zamowien.

Dziedzicza po wbudowanych wyjatkach (ValueError, LookupError, ...), routery
mapuja je na kody HTTP.
"""


class CartValidationError(ValueError):
    """Niepoprawne dane wejsciowe - nic nie zostalo zapisane."""


class CartCapacityError(CartValidationError):
    def __init__(self, max_quantity: int):
        super().__init__(f"Mozna dodac maksymalnie {max_quantity} sztuk tej konfiguracji")
        self.max_quantity = max_quantity


class NotFoundError(LookupError):
    pass


class MenuItemUnavailableError(NotFoundError):
    def __init__(self, menu_item_id: str):
        super().__init__(f"Pozycja menu {menu_item_id} jest niedostepna")
        self.menu_item_id = menu_item_id


class CartItemNotFoundError(NotFoundError):
    """Pozycja nie istnieje albo nie nalezy do aktywnego koszyka usera."""

    def __init__(self, cart_item_id: int):
        super().__init__(f"Pozycja koszyka {cart_item_id} nie istnieje")
        self.cart_item_id = cart_item_id


class EmptyCartError(NotFoundError):
    def __init__(self):
        super().__init__("Koszyk jest pusty")


class ProfileNotFoundError(NotFoundError):
    def __init__(self, user_id: int):
        super().__init__(f"Profil uzytkownika {user_id} nie istnieje")
        self.user_id = user_id


class DeliveryLocationNotFoundError(NotFoundError):
    def __init__(self, location_id: str):
        super().__init__(f"Lokalizacja dostawy {location_id} nie istnieje")
        self.location_id = location_id


class OrderNotFoundError(NotFoundError):
    def __init__(self, display_id: str):
        super().__init__(f"Zamowienie {display_id} nie istnieje")
        self.display_id = display_id


class OrderNumberConflictError(RuntimeError):
    """Wyczerpane proby przydzialu numeru zamowienia - klient moze ponowic cale zlozenie."""

    def __init__(self, display_day, attempts: int):
        super().__init__(
            f"Nie udalo sie przydzielic numeru zamowienia na dzien {display_day} po {attempts} probach"
        )
        self.display_day = display_day
        self.attempts = attempts


class CartChangedError(RuntimeError):
    """Koszyk zmienil sie w trakcie skladania zamowienia - klient moze sprobowac ponownie."""

    def __init__(self, cart_id: int, reason: str = "zmienil sie w trakcie skladania zamowienia"):
        super().__init__(f"Koszyk {cart_id} {reason}")
        self.cart_id = cart_id


class CartNotActiveError(CartChangedError):
    """Koszyk zostal juz zlozony (status submitted) przez rownolegle zapytanie."""

    def __init__(self, cart_id: int):
        super().__init__(cart_id, "nie jest juz aktywny")
