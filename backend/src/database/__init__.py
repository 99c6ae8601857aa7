# Wait Time Tracker - Database Package
