# Wait Time Tracker - API Package
