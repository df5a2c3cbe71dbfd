"""Serialization schemas for stored documents."""

from marshmallow import Schema, fields


class TimeOfDaySchema(Schema):
    hour = fields.Int()
    minute = fields.Int()


class DailyScheduleSchema(Schema):
    start = fields.Nested(TimeOfDaySchema)
    end = fields.Nested(TimeOfDaySchema)


class LocationSchema(Schema):
    type = fields.Str()
    coordinates = fields.List(fields.Raw())


class ContactSchema(Schema):
    name = fields.Raw()
    value = fields.Raw()


class RestaurantSchema(Schema):
    id = fields.Int(attribute="_id", data_key="_id")
    name = fields.Str()
    type = fields.Str()
    price = fields.Str()
    score = fields.Float()
    score_count = fields.Int()
    location = fields.Nested(LocationSchema)
    schedule = fields.Dict(keys=fields.Str(), values=fields.Nested(DailyScheduleSchema))
    contacts = fields.List(fields.Nested(ContactSchema))
    images = fields.List(fields.Str())
    added_by = fields.Str()
    added = fields.DateTime()
    deleted = fields.Bool()


class ScoreSchema(Schema):
    id = fields.Int(attribute="_id", data_key="_id")
    restaurant_id = fields.Int()
    score = fields.Float()
    added_by = fields.Str()
    added = fields.DateTime()


class CommentSchema(Schema):
    id = fields.Int(attribute="_id", data_key="_id")
    restaurant_id = fields.Int()
    text = fields.Raw()
    added_by = fields.Str()
    added = fields.DateTime()


restaurant_schema = RestaurantSchema()
restaurants_schema = RestaurantSchema(many=True)
score_schema = ScoreSchema()
scores_schema = ScoreSchema(many=True)
comments_schema = CommentSchema(many=True)
