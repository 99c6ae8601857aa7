# Wait Time Tracker - Sports Data Cache
