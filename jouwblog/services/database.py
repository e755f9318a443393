from pymongo import MongoClient, ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import ConnectionFailure, PyMongoError
from typing import Optional, Dict, Any, List
import logging

from jouwblog.config import config

logger = logging.getLogger(__name__)

INDEXES = {
    config.USERS_COLLECTION: [
        ([('user_id', ASCENDING)], {'unique': True}),
        ([('username', ASCENDING)], {'unique': True}),
        ([('email', ASCENDING)], {'unique': True}),
    ],
    config.POSTS_COLLECTION: [
        ([('post_id', ASCENDING)], {'unique': True}),
        ([('user_id', ASCENDING), ('post_timestamp', DESCENDING)], {}),
    ],
    config.COMMENTS_COLLECTION: [
        ([('comment_id', ASCENDING)], {'unique': True}),
        ([('post_id', ASCENDING), ('comment_timestamp', DESCENDING)], {}),
    ],
}

# Mongo's own _id never leaves this module
NO_OBJECT_ID = {'_id': 0}


class DatabaseService:
    def __init__(self, client: Optional[MongoClient] = None, database: Optional[str] = None):
        self.client: Optional[MongoClient] = client
        self.database_name = database or config.MONGODB_DATABASE
        self.db = self.client[self.database_name] if client is not None else None

    def connect(self):
        if self.db is not None:
            return

        try:
            logger.info(f"Connecting to MongoDB: {config.MONGODB_URI}")

            self.client = MongoClient(
                config.MONGODB_URI,
                serverSelectionTimeoutMS=config.MONGODB_TIMEOUT_MS,
                connectTimeoutMS=config.MONGODB_TIMEOUT_MS
            )

            self.client.admin.command('ping')
            self.db = self.client[self.database_name]

            logger.info(f"Successfully connected to MongoDB database: {self.database_name}")

        except ConnectionFailure as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            self.client = None
            raise

    def ensure_indexes(self):
        for collection_name, indexes in INDEXES.items():
            collection = self.get_collection(collection_name)
            for keys, options in indexes:
                collection.create_index(keys, **options)
            logger.info(f"Ensured {len(indexes)} indexes on {collection_name}")

    def get_collection(self, collection_name: str):
        if self.db is None:
            self.connect()
        return self.db[collection_name]

    def check_health(self) -> Dict[str, Any]:
        try:
            if self.db is None:
                self.connect()
            self.client.admin.command('ping')

            return {
                'status': 'healthy',
                'database': self.database_name,
                'collections': {
                    name: self.db[name].estimated_document_count()
                    for name in INDEXES
                }
            }

        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return {
                'status': 'unhealthy',
                'error': str(e)
            }

    def insert_one(self, collection_name: str, document: Dict[str, Any]) -> str:
        try:
            collection = self.get_collection(collection_name)
            # insert_one adds _id to the dict it is given
            result = collection.insert_one(dict(document))
            logger.info(f"Inserted document into {collection_name}: {result.inserted_id}")
            return str(result.inserted_id)
        except PyMongoError as e:
            logger.error(f"Error inserting document into {collection_name}: {e}")
            raise

    def find_one(self, collection_name: str, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            collection = self.get_collection(collection_name)
            return collection.find_one(query, NO_OBJECT_ID)
        except PyMongoError as e:
            logger.error(f"Error finding document in {collection_name}: {e}")
            raise

    def find_many(
        self,
        collection_name: str,
        query: Dict[str, Any],
        sort: Optional[List[tuple]] = None,
        skip: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        try:
            collection = self.get_collection(collection_name)

            cursor = collection.find(query, NO_OBJECT_ID)

            if sort:
                cursor = cursor.sort(sort)

            if skip:
                cursor = cursor.skip(skip)

            if limit:
                cursor = cursor.limit(limit)

            results = list(cursor)
            logger.debug(f"Query on {collection_name} returned {len(results)} documents")
            return results
        except PyMongoError as e:
            logger.error(f"Error finding documents in {collection_name}: {e}")
            raise

    def count(self, collection_name: str, query: Dict[str, Any]) -> int:
        try:
            collection = self.get_collection(collection_name)
            return collection.count_documents(query)
        except PyMongoError as e:
            logger.error(f"Error counting documents in {collection_name}: {e}")
            raise

    def update_one(
        self,
        collection_name: str,
        query: Dict[str, Any],
        update: Dict[str, Any],
        use_operators: bool = False
    ) -> bool:
        try:
            collection = self.get_collection(collection_name)
            if use_operators:
                result = collection.update_one(query, update)
            else:
                result = collection.update_one(query, {'$set': update})
            logger.info(
                f"Updated document in {collection_name}: "
                f"matched={result.matched_count} modified={result.modified_count}"
            )
            return result.matched_count > 0
        except PyMongoError as e:
            logger.error(f"Error updating document in {collection_name}: {e}")
            raise

    def find_one_and_update(
        self,
        collection_name: str,
        query: Dict[str, Any],
        update: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """Apply an operator update and return the document as it is afterwards."""
        try:
            collection = self.get_collection(collection_name)
            return collection.find_one_and_update(
                query,
                update,
                projection=NO_OBJECT_ID,
                return_document=ReturnDocument.AFTER
            )
        except PyMongoError as e:
            logger.error(f"Error updating document in {collection_name}: {e}")
            raise

    def delete_one(self, collection_name: str, query: Dict[str, Any]) -> bool:
        try:
            collection = self.get_collection(collection_name)
            result = collection.delete_one(query)
            logger.info(f"Deleted document from {collection_name}: deleted={result.deleted_count}")
            return result.deleted_count > 0
        except PyMongoError as e:
            logger.error(f"Error deleting document from {collection_name}: {e}")
            raise

    def delete_many(self, collection_name: str, query: Dict[str, Any]) -> int:
        try:
            collection = self.get_collection(collection_name)
            result = collection.delete_many(query)
            logger.info(f"Deleted documents from {collection_name}: deleted={result.deleted_count}")
            return result.deleted_count
        except PyMongoError as e:
            logger.error(f"Error deleting documents from {collection_name}: {e}")
            raise

    def close(self):
        if self.client:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("MongoDB connection closed")


db_service = DatabaseService()
