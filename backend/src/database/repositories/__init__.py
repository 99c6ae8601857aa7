# Wait Time Tracker - Repositories
