# Wait Time Tracker - Maintenance Scripts
