# Wait Time Tracker - API Routes
