# Wait Time Tracker - API Middleware
