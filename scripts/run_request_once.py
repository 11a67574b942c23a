#!/usr/bin/env python3
"""Run one request through the whole pipeline in the foreground, for testing/debugging.

Usage: run_request_once.py PHOTO LOCATION YYYY-MM-DD [TIME_OF_DAY]
"""

import os
import sys
from datetime import datetime

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from werkzeug.datastructures import FileStorage

from skyweave import create_app
from skyweave.extensions import db, tasks
from skyweave.services.request_service import RequestService

if __name__ == '__main__':
    if len(sys.argv) < 4:
        print(__doc__)
        sys.exit(1)

    photo, location, date_str = sys.argv[1:4]
    time_of_day = sys.argv[4] if len(sys.argv) > 4 else ''
    target = datetime.strptime(date_str, '%Y-%m-%d').date()

    app = create_app()
    app.config['TASKS_RUN_INLINE'] = True
    tasks.run_inline = True

    with app.app_context():
        db.create_all()
        service = RequestService()
        with open(photo, 'rb') as fh:
            upload = FileStorage(stream=fh, filename=os.path.basename(photo))
            req = service.create_request(None, location, target, time_of_day, upload)

        req = service.get_request(req.id)
        print(f"Request {req.id}: {req.status}")
        if req.status != 'weather_fetched':
            print(f"Error: {req.error_message}")
            sys.exit(1)

        print(f"Location: {req.location_label}")
        print(f"Prompt: {req.prompt}")
        service.confirm(req.id)

        req = service.get_request(req.id)
        print(f"Final status: {req.status}")
        if req.status == 'completed':
            print(f"Result: {req.result_image_path}")
        elif req.error_message:
            print(f"Error: {req.error_message}")
