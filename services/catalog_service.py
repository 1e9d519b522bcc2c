# services/catalog_service.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# -----------------------------
# Search requests (mock providers; extra keys are echoed back)
# -----------------------------

class _SearchRequest(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def echo(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)

class FlightSearchRequest(_SearchRequest):
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    departDate: Optional[str] = None
    returnDate: Optional[str] = None
    passengers: Optional[int] = None

class HotelSearchRequest(_SearchRequest):
    destination: Optional[str] = None
    checkIn: Optional[str] = None
    checkOut: Optional[str] = None
    guests: Optional[int] = None
    rooms: Optional[int] = None

class CarSearchRequest(_SearchRequest):
    location: Optional[str] = None
    pickupDate: Optional[str] = None
    returnDate: Optional[str] = None
    carType: Optional[str] = None

class RestaurantSearchRequest(_SearchRequest):
    location: Optional[str] = None
    cuisine: Optional[str] = None
    priceRange: Optional[str] = None
    date: Optional[str] = None

# -----------------------------
# Static catalogs
# -----------------------------

DESTINATIONS: List[Dict[str, Any]] = [
    {"id": 1, "name": "Paris, France", "description": "City of Love and Lights"},
    {"id": 2, "name": "Tokyo, Japan", "description": "Modern metropolis with rich culture"},
    {"id": 3, "name": "New York, USA", "description": "The Big Apple"},
    {"id": 4, "name": "London, England", "description": "Historic and modern blend"},
    {"id": 5, "name": "Dubai, UAE", "description": "Luxury and innovation"},
    {"id": 6, "name": "Rome, Italy", "description": "Eternal City with ancient history"},
    {"id": 7, "name": "Bali, Indonesia", "description": "Tropical paradise"},
    {"id": 8, "name": "Sydney, Australia", "description": "Harbor city with iconic landmarks"},
]

TRAVEL_TIPS: List[str] = [
    "Book flights in advance for better deals",
    "Pack light and bring versatile clothing",
    "Research local customs and etiquette",
    "Keep digital and physical copies of important documents",
    "Notify your bank about travel plans",
    "Download offline maps and translation apps",
    "Pack a universal power adapter",
    "Consider travel insurance",
]

def list_destinations() -> List[Dict[str, Any]]:
    return [dict(d) for d in DESTINATIONS]

def list_tips() -> List[str]:
    return list(TRAVEL_TIPS)

def search_flights(req: FlightSearchRequest) -> Dict[str, Any]:
    origin = req.from_ or "New York"
    dest = req.to or "Dubai"
    flights = [
        {"id": 1, "airline": "Emirates", "from": origin, "to": dest,
         "departTime": "08:00", "arriveTime": "20:30", "duration": "12h 30m", "price": 850, "stops": 0},
        {"id": 2, "airline": "British Airways", "from": origin, "to": dest,
         "departTime": "14:15", "arriveTime": "09:45+1", "duration": "15h 30m", "price": 720, "stops": 1},
        {"id": 3, "airline": "Qatar Airways", "from": origin, "to": dest,
         "departTime": "22:00", "arriveTime": "18:20+1", "duration": "14h 20m", "price": 890, "stops": 1},
    ]
    return {"flights": flights, "searchParams": req.echo()}

def search_hotels(req: HotelSearchRequest) -> Dict[str, Any]:
    location = req.destination or "Dubai"
    hotels = [
        {"id": 1, "name": "Grand Palace Hotel", "location": location, "rating": 5, "price": 250,
         "currency": "USD", "amenities": ["Wi-Fi", "Pool", "Gym", "Spa", "Restaurant"], "image": "hotel1.jpg"},
        {"id": 2, "name": "City Center Inn", "location": location, "rating": 4, "price": 120,
         "currency": "USD", "amenities": ["Wi-Fi", "Breakfast", "Gym"], "image": "hotel2.jpg"},
        {"id": 3, "name": "Luxury Resort & Spa", "location": location, "rating": 5, "price": 380,
         "currency": "USD", "amenities": ["Wi-Fi", "Pool", "Spa", "Beach Access", "All-Inclusive"], "image": "hotel3.jpg"},
    ]
    return {"hotels": hotels, "searchParams": req.echo()}

def search_cars(req: CarSearchRequest) -> Dict[str, Any]:
    location = req.location or "Dubai Airport"
    cars = [
        {"id": 1, "brand": "Toyota", "model": "Camry", "type": "Sedan", "location": location, "pricePerDay": 45,
         "currency": "USD", "features": ["Automatic", "A/C", "GPS", "4 Doors", "5 Seats"], "image": "car1.jpg"},
        {"id": 2, "brand": "Nissan", "model": "Altima", "type": "SUV", "location": location, "pricePerDay": 65,
         "currency": "USD", "features": ["Automatic", "A/C", "GPS", "4WD", "7 Seats"], "image": "car2.jpg"},
        {"id": 3, "brand": "BMW", "model": "3 Series", "type": "Luxury", "location": location, "pricePerDay": 120,
         "currency": "USD", "features": ["Automatic", "A/C", "GPS", "Leather", "Premium Audio"], "image": "car3.jpg"},
    ]
    return {"cars": cars, "searchParams": req.echo()}

def search_restaurants(req: RestaurantSearchRequest) -> Dict[str, Any]:
    location = req.location or "Dubai"
    restaurants = [
        {"id": 1, "name": "The Golden Spoon", "cuisine": req.cuisine or "International", "location": location,
         "rating": 4.8, "priceRange": "$$$$", "openHours": "6:00 PM - 11:00 PM",
         "specialties": ["Seafood", "Steaks", "Fine Dining"], "image": "restaurant1.jpg"},
        {"id": 2, "name": "Street Food Paradise", "cuisine": req.cuisine or "Local", "location": location,
         "rating": 4.5, "priceRange": "$$", "openHours": "11:00 AM - 10:00 PM",
         "specialties": ["Local Dishes", "Casual Dining", "Family Friendly"], "image": "restaurant2.jpg"},
        {"id": 3, "name": "Rooftop Bistro", "cuisine": req.cuisine or "Mediterranean", "location": location,
         "rating": 4.7, "priceRange": "$$$", "openHours": "5:00 PM - 12:00 AM",
         "specialties": ["Mediterranean", "City Views", "Cocktails"], "image": "restaurant3.jpg"},
    ]
    return {"restaurants": restaurants, "searchParams": req.echo()}
