from flask import request, current_app
from flask_restful import Resource, Api
from slotstore.exceptions import (DuplicateKeyError, StoreFullError,
                                  InvalidRecordError, SlotStoreError)


def init_routes(api: Api):
    # Store metadata
    api.add_resource(StoreInfo, '/api/info')
    api.add_resource(StoreVerify, '/api/verify')

    # Records
    api.add_resource(RecordList, '/api/records')
    api.add_resource(RecordDetail, '/api/records/<int(signed=True):key>')

    # Diagnostics
    api.add_resource(SlotList, '/api/slots')
    api.add_resource(FreeSlotList, '/api/free')


def _manager():
    return current_app.config['STORE_MANAGER']


class StoreInfo(Resource):
    def get(self):
        return _manager().get_info()


class StoreVerify(Resource):
    def get(self):
        try:
            problems = _manager().verify()
        except SlotStoreError as e:
            return {'consistent': False, 'problems': [str(e)]}, 500
        return {'consistent': not problems, 'problems': problems}


class RecordList(Resource):
    def get(self):
        return _manager().get_records()

    def post(self):
        data = request.get_json(silent=True)
        if not data:
            return {'error': 'No data provided'}, 400

        if 'key' not in data or 'name' not in data:
            return {'error': 'Missing required fields: key, name'}, 400

        key = data['key']
        if not isinstance(key, int) or isinstance(key, bool):
            return {'error': 'Key must be an integer'}, 400
        name = data['name']
        if not isinstance(name, str):
            return {'error': 'Name must be a string'}, 400
        ordered = bool(data.get('ordered', False))

        try:
            index = _manager().add_record(key, name, ordered=ordered)
        except DuplicateKeyError as e:
            return {'error': str(e)}, 409
        except StoreFullError as e:
            return {'error': str(e)}, 507
        except InvalidRecordError as e:
            return {'error': str(e)}, 400
        except SlotStoreError as e:
            return {'error': str(e)}, 500

        return {
            'message': 'Record inserted',
            'index': index,
            'key': key,
            'name': name
        }, 201


class RecordDetail(Resource):
    def get(self, key):
        record = _manager().get_record(key)
        if not record:
            return {'error': f'Key {key} not found'}, 404
        return record

    def delete(self, key):
        if not _manager().delete_record(key):
            return {'error': f'Key {key} not found'}, 404
        return {'message': 'Record deleted', 'key': key}


class SlotList(Resource):
    def get(self):
        return _manager().get_slots()


class FreeSlotList(Resource):
    def get(self):
        return _manager().get_free_slots()
