# Import all CRUD modules for easier access
from app.crud.booking import booking_crud
from app.crud.car import car_crud
from app.crud.users import customer_crud, driver_crud, admin_crud, find_account, get_account
from app.crud.waitlist import waitlist_crud
